# ns_guard/adjudicator.py
"""
Admission review handling for namespace deletions.

Requests go through a fixed sequence of gates; the first gate that reaches a
decision wins and the rest are skipped.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple

from pydantic import ValidationError

from ns_guard.engine import BYPASS_ANNOTATION_KEY, DecisionEngine
from ns_guard.models import (
    AdmissionRequest,
    AdmissionResponse,
    AdmissionReview,
    GroupVersionResource,
    Status,
    Verdict,
)
from ns_guard.tools.k8s_client import NamespaceNotFound

logger = logging.getLogger(__name__)

NAMESPACE_RESOURCE = GroupVersionResource(group="", version="v1", resource="namespaces")
PROTECTED_OPERATION = "DELETE"

WEBHOOK_PATH = "/"
DECODE_ERROR_PREFIX = "Failed to decode the request body json into an AdmissionReview resource: "

JSON = "application/json"
TEXT = "text/plain; charset=utf-8"


def _annotations(namespace_obj: Any) -> Dict[str, str]:
    metadata = getattr(namespace_obj, "metadata", None)
    return getattr(metadata, "annotations", None) or {}


class Adjudicator:
    def __init__(
        self,
        engine: DecisionEngine,
        get_namespace: Callable[[str], Any],
        admit_all: bool = False,
    ):
        self.engine = engine
        self.get_namespace = get_namespace
        self.admit_all = admit_all

    # ----------------------------
    # Transport-level entry point
    # ----------------------------

    def adjudicate(self, method: str, path: str, body: bytes) -> Tuple[int, bytes, str]:
        """
        Handle one webhook call.

        Returns (http status, response body, media type).
        """
        if method != "POST":
            msg = f"Incoming request method {method} is not supported, only POST is supported"
            return 405, msg.encode("utf-8"), TEXT

        if path != WEBHOOK_PATH:
            return 404, f"{path} 404 Not Found".encode("utf-8"), TEXT

        try:
            review = AdmissionReview.model_validate_json(body)
            if review.request is None:
                raise ValueError("missing request")
        except (ValidationError, ValueError) as e:
            verdict = Verdict.deny(DECODE_ERROR_PREFIX + str(e))
            return 400, self.respond(AdmissionReview(), verdict), JSON

        logger.debug(
            "Incoming AdmissionReview for %s on resource: %s",
            review.request.operation,
            review.request.resource,
        )
        return 200, self.respond(review, self.review(review.request)), JSON

    # ----------------------------
    # Policy gates
    # ----------------------------

    def review(self, req: AdmissionRequest) -> Verdict:
        if self.admit_all:
            logger.warning(
                "admitAll flag is set to true. Allowing Namespace admission review "
                "request to pass without validation."
            )
            return Verdict.allow()

        if req.resource != NAMESPACE_RESOURCE:
            return Verdict.deny(f"Incoming resource is not a Namespace: {req.resource}")

        if req.operation != PROTECTED_OPERATION:
            return Verdict.deny(
                f"Incoming operation is {req.operation} on namespace {req.name}. "
                f"Only DELETE is currently supported."
            )

        try:
            namespace = self.get_namespace(req.name)
        except NamespaceNotFound as e:
            # apiserver reports the missing namespace itself
            logger.debug("Namespace %s not found, let apiserver handle the error: %s", req.name, e)
            return Verdict.allow()
        except Exception as e:
            return Verdict.deny(f"Error occurred while retrieving the namespace {req.name}: {e}")

        if _annotations(namespace).get(BYPASS_ANNOTATION_KEY) == "true":
            logger.info(
                "Namespace %s has the bypass annotation set[%s:true]. OK to DELETE.",
                req.name,
                BYPASS_ANNOTATION_KEY,
            )
            return Verdict.allow()

        tally = self.engine.evaluate(req.name)
        if not tally.clear:
            return Verdict.deny(tally.denial_message(req.name))

        logger.info("Namespace %s does not contain any workload resources. OK to DELETE.", req.name)
        return Verdict.allow()

    # ----------------------------
    # Response envelope
    # ----------------------------

    def respond(self, review: AdmissionReview, verdict: Verdict) -> bytes:
        req = review.request
        logger.info(
            "Responding Allowed: %s for %s on Namespace: %s by user: %s",
            verdict.allowed,
            req.operation if req else "",
            req.name if req else "",
            req.user_info.username if req else "",
        )
        if not verdict.allowed:
            logger.error("Rejection reason: %s", verdict.reason)

        out = AdmissionReview(
            apiVersion=review.api_version,
            kind=review.kind,
            response=AdmissionResponse(
                uid=req.uid if req else "",
                allowed=verdict.allowed,
                status=Status(message=verdict.reason),
            ),
        )
        return out.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
