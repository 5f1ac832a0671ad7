"""Command-line entry point: ``python -m twitar`` / ``twitar``.

Example
-------
    TWITAR_STORE=memory twitar --port 8000 --log-level debug
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from twitar.config import TwitarConfig
from twitar.servers.app import create_app
from twitar.utils.logging import setup_logging

logger = logging.getLogger("twitar.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="twitar", description=__doc__.splitlines()[0])
    parser.add_argument("--host", default="127.0.0.1", help="interface to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=8000, help="port to bind (default: %(default)s)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="log level (default: %(default)s)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)
    try:
        config = TwitarConfig.from_env()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=args.log_level)
    return 0


if __name__ == "__main__":
    sys.exit(main())
