from __future__ import annotations

import argparse
import os
import sys
from typing import Sequence

from ..logging import get_logger, set_level

LOG = get_logger("cli")

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def _serve(ns: argparse.Namespace) -> int:
    import uvicorn

    from ..storage import InMemoryStorage
    from ..web import create_app

    set_level(ns.log_level)
    storage = None
    if ns.memory:
        LOG.warning("In-memory storage selected; users and reports are lost on exit.")
        storage = InMemoryStorage()

    app = create_app(
        root_dir=os.getcwd(),
        storage=storage,
        static_dir=ns.static_dir,
        allow_origins=ns.allow_origins,
        serve_static=bool(ns.static_dir) and not ns.api_only,
    )
    LOG.info("DrishtiFi listening on http://%s:%d", ns.host, ns.port)
    uvicorn.run(app, host=ns.host, port=ns.port, log_level=ns.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drishtifi",
        description="Credit-readiness reports for offline shops from inventory and ledger photos.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the report API (and an optional static frontend).")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8001)
    serve.add_argument("--log-level", choices=LOG_LEVELS, default="info")
    serve.add_argument("--static-dir", help="Frontend build directory, relative to the project root")
    serve.add_argument("--api-only", action="store_true", help="Never mount the static frontend")
    serve.add_argument("--memory", action="store_true", help="Keep users and reports in memory only")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        metavar="ORIGIN",
        help="CORS origin to allow; repeatable, '*' allows any.",
    )
    serve.set_defaults(handler=_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    code = args.handler(args)
    LOG.debug("'%s' exited with %d", args.command, code)
    return code


if __name__ == "__main__":
    sys.exit(main())
