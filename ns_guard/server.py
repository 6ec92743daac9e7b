# ns_guard/server.py

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from ns_guard.adjudicator import Adjudicator

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(adjudicator: Adjudicator) -> FastAPI:
    app = FastAPI(title="Namespace deletion guard", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.adjudicator = adjudicator

    # =====================================================
    # Liveness
    # =====================================================

    @app.api_route("/status.html", methods=_ALL_METHODS, response_class=PlainTextResponse)
    def status(request: Request):
        logger.info(
            "Serving %s %s request for client: %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "",
        )
        return "OK"

    # =====================================================
    # Webhook (method and path are checked by the adjudicator)
    # =====================================================

    @app.api_route("/{path:path}", methods=_ALL_METHODS)
    async def webhook(request: Request):
        logger.info(
            "Serving %s %s request for client: %s",
            request.method,
            request.url.path,
            request.client.host if request.client else "",
        )
        body = await request.body()
        status_code, content, media_type = await run_in_threadpool(
            adjudicator.adjudicate, request.method, request.url.path, body
        )
        return Response(content=content, status_code=status_code, media_type=media_type)

    return app
