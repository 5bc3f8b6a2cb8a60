"""Command-line interface for cmdgate.

Provides the ``cmdgate`` entry point: ``serve`` runs the HTTP server and
``commands`` lists the registered commands.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _port(value: str) -> int:
    """argparse type for a TCP port number."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range 0-65535: {port}")
    return port


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="cmdgate",
        description="HTTP daemon with an info page, health probe and whitelisted commands",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/cmdgate.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument(
        "--host", type=str, default=None,
        help="Bind address (default: from config, 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port", type=_port, default=None,
        help="Listen port (default: $PORT or 80)",
    )

    subparsers.add_parser("commands", help="List the commands /cmd may run")

    return parser.parse_args(argv)


def _list_commands() -> None:
    from cmdgate.endpoint.commands import DEFAULT_COMMANDS

    for name, shell_command in DEFAULT_COMMANDS.items():
        print(f"{name}\t{shell_command}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the cmdgate CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    if args.command == "commands":
        _list_commands()
        return

    from cmdgate.config.settings import load_settings
    from cmdgate.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings = settings.model_copy(
            update={"logging": settings.logging.model_copy(update={"level": "DEBUG"})}
        )

    setup_logging(settings.logging)

    if args.command == "serve":
        overrides: dict = {}
        if args.port is not None:
            overrides["port"] = args.port
        if args.host is not None:
            overrides["server"] = settings.server.model_copy(update={"host": args.host})
        if overrides:
            settings = settings.model_copy(update=overrides)

        from cmdgate.endpoint.server import main as serve

        logger.info("Starting server on %s:%d", settings.server.host, settings.port)
        serve(settings)


if __name__ == "__main__":
    main()
