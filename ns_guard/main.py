# ns_guard/main.py
import argparse
import ssl
import sys
from typing import List, Optional

import uvicorn

from ns_guard.adjudicator import Adjudicator
from ns_guard.config import ConfigError, Settings, load_settings, parse_bool
from ns_guard.engine import DecisionEngine
from ns_guard.logger import get_logger
from ns_guard.server import create_app
from ns_guard.tools.k8s_client import build_counters, get_clients, make_namespace_getter


_UVICORN_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def _uvicorn_level(level: str) -> str:
    level = (level or "").lower()
    return level if level in _UVICORN_LEVELS else "info"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="ns-guard",
        description="Admission webhook that blocks deletion of non-empty namespaces.",
    )
    p.add_argument("--config", help="YAML settings file")
    p.add_argument("--port", type=int, help="Server port.")
    p.add_argument("--log-file", dest="log_file", help="Log file name and full path.")
    p.add_argument("--log-level", dest="log_level", help="The log level.")
    p.add_argument("--cert-file", dest="cert_file", help="The cert file for the https server.")
    p.add_argument("--key-file", dest="key_file", help="The key file for the https server.")
    p.add_argument(
        "--client-ca-file",
        dest="client_ca_file",
        help="The cluster root CA that signs the apiserver cert.",
    )
    p.add_argument(
        "--client-auth",
        dest="client_auth",
        type=parse_bool,
        nargs="?",
        const=True,
        help="Verify the client cert during the TLS handshake.",
    )
    p.add_argument(
        "--admit-all",
        dest="admit_all",
        type=parse_bool,
        nargs="?",
        const=True,
        help="Admit all namespace deletions without validation.",
    )
    return p.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    return load_settings(args.config, **overrides)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except (ConfigError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        log = get_logger(settings.log_file, settings.log_level)
    except OSError as e:
        print(f"Unable to open the log file: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        clients = get_clients()
    except Exception as e:
        log.critical("Error occurred while building the kube-config: %s", e)
        sys.exit(1)

    adjudicator = Adjudicator(
        engine=DecisionEngine(build_counters(clients)),
        get_namespace=make_namespace_getter(clients),
        admit_all=settings.admit_all,
    )
    app = create_app(adjudicator)

    log.info(
        "HTTPS server listening on port: %d with ClientAuthEnabled: %s",
        settings.port,
        settings.client_auth,
    )
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        ssl_certfile=settings.cert_file,
        ssl_keyfile=settings.key_file,
        ssl_ca_certs=settings.client_ca_file,
        ssl_cert_reqs=ssl.CERT_REQUIRED if settings.client_auth else ssl.CERT_NONE,
        log_level=_uvicorn_level(settings.log_level),
    )


if __name__ == "__main__":
    main()
