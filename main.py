"""Command-line launcher for the user analytics dashboard."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from userdash.config import load_settings, resolve_config_path

logger = logging.getLogger("userdash.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User analytics dashboard")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP dashboard")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the dashboard")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP dashboard (default: 8000)",
    )
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML file with a 'clerk' section (api_url, secret_key)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first != "serve":
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(*, host: str, port: int, config: str | None) -> None:
    from userdash.service import create_app
    import uvicorn

    settings = load_settings(resolve_config_path(config))
    logger.info("Starting analytics dashboard on http://%s:%s", host, port)

    app = create_app(settings=settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(host=args.host, port=args.port, config=args.config)


if __name__ == "__main__":
    main()
