"""Command-line interface for crudline.

Provides the entry point for hosting the command server and for sending
single commands to a running server.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="crudline",
        description="Minimal loopback command server for CRUD-style clients",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/crudline.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the command server and run until interrupted")

    send_parser = subparsers.add_parser("send", help="Send one command line to a running server")
    send_parser.add_argument(
        "line", type=str,
        help="Raw command line, e.g. 'CREATE|42' or 'SHAKE'",
    )

    return parser.parse_args(argv)


def _serve(settings, stop: threading.Event | None = None) -> int:
    """Host the server: start it once, then keep the process alive."""
    from crudline.server.lifecycle import start_server

    start_server(settings.server)
    stop = stop or threading.Event()
    try:
        stop.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0


async def _send(settings, line: str) -> int:
    """Send a single command and print the server's response."""
    from crudline.client import CommandClient, CommandClientError

    client = CommandClient(
        host=settings.client.host,
        port=settings.client.port,
        timeout=settings.client.timeout,
    )
    try:
        response = await client.send(line)
    except CommandClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(response)
    return 0 if response.startswith("OK|") else 2


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the crudline CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return 0

    from crudline.config.settings import load_settings
    from crudline.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting command server on %s:%d", settings.server.host, settings.server.port)
        return _serve(settings)

    if args.command == "send":
        return asyncio.run(_send(settings, args.line))

    return 0


if __name__ == "__main__":
    sys.exit(main())
