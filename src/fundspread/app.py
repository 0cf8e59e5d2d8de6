from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import load_settings
from .di import build_container
from .logging import configure_logging
from .runtime import run

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point supporting both CLI commands and watch mode.

    - `fundspread` or `fundspread watch`: poll and log signals until interrupted
    - `fundspread <typer-subcommand>`: run CLI mode (e.g. `fundspread arbitrage --min-delta 0.001`)
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        return _run_watch_mode([])

    if argv[0] == "watch":
        return _run_watch_mode(argv[1:])

    return _run_cli_mode(argv)


def _run_watch_mode(argv: list[str]) -> int:
    """Run the polling loop."""
    parser = argparse.ArgumentParser(
        prog="fundspread watch", description="Poll exchanges and log funding-rate signals"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (default: FUNDSPREAD_CONFIG or ./config.yml)",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Stop after this many polling cycles (default: run until interrupted)",
    )

    args = parser.parse_args(argv)
    configure_logging(Path("logs"))

    try:
        settings = load_settings(args.config)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    from .exchanges.init import create_exchange_clients_from_settings

    exchange_clients = create_exchange_clients_from_settings(settings)
    container = build_container(settings, exchange_clients)

    logger.info("fundspread watch booting with %s", ", ".join(container.aggregator.exchange_names) or "no exchanges")
    try:
        asyncio.run(run(container, iterations=args.iterations))
    except KeyboardInterrupt:
        logger.info("interrupted")
    logger.info("fundspread watch exit")

    return 0


def _run_cli_mode(argv: list[str]) -> int:
    """Run in CLI mode using Typer."""
    try:
        configure_logging(Path("logs"))

        # Import CLI app here to avoid circular import
        from .cli import run_cli
        run_cli(argv)
        return 0
    except SystemExit as e:
        return e.code if e.code else 0
    except Exception as e:
        logger.error("CLI error: %s", e, exc_info=True)
        return 1
