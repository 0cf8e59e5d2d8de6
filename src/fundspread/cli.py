"""Typer-based CLI for funding-rate queries."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from .analytics import TickerSummary
    from .di import AppContainer

T = TypeVar("T")


# Import with local function to avoid circular imports
def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)

def _build_container(settings, exchange_clients):
    from .di import build_container
    return build_container(settings, exchange_clients)

def _create_exchange_clients_from_settings(settings):
    from .exchanges.init import create_exchange_clients_from_settings
    return create_exchange_clients_from_settings(settings)

app = typer.Typer(help="Cross-exchange perpetual funding-rate monitor")
console = Console()
logger = logging.getLogger(__name__)

CONFIG_HELP = "Path to YAML config file (default: FUNDSPREAD_CONFIG or ./config.yml)"


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def init_components(config_path: Optional[Path] = None) -> "AppContainer":
    """Load settings and build the container with its exchange clients."""
    settings = _load_settings(config_path)
    exchange_clients = _create_exchange_clients_from_settings(settings)
    return _build_container(settings, exchange_clients)


async def _query(container: "AppContainer", call: Callable[["AppContainer"], Awaitable[T]]) -> T:
    try:
        return await call(container)
    finally:
        await container.aggregator.close()


def _run_query(config: Optional[Path], call: Callable[["AppContainer"], Awaitable[T]]) -> tuple["AppContainer", T]:
    try:
        container = init_components(config)
        return container, asyncio.run(_query(container, call))
    except Exception as e:
        logger.error("Query failed: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload))


def format_rate(rate: float | None) -> str:
    return f"{rate * 100:.4f}%" if rate is not None else "-"


def format_time(timestamp_ms: int | None) -> str:
    if timestamp_ms is None:
        return "-"
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%m-%d %H:%M")


def _summary_table(title: str, summaries: list["TickerSummary"], exchange_names: list[str]) -> Table:
    table = Table(title=title)
    table.add_column("Ticker", style="cyan", no_wrap=True)
    for name in exchange_names:
        table.add_column(name, justify="right")
    table.add_column("Diff", style="red", justify="right")
    table.add_column("Long", style="green")
    table.add_column("Short", style="magenta")

    for summary in summaries:
        cells = []
        for name in exchange_names:
            quote = summary.exchanges.get(name)
            cells.append(format_rate(quote.funding_rate) if quote else "-")
        table.add_row(
            summary.ticker,
            *cells,
            format_rate(summary.funding_rate_diff),
            summary.long_exchange or "-",
            summary.short_exchange or "-",
        )
    return table


@app.command()
def snapshot(
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Fetch every exchange once and show what each returned."""
    _, data = _run_query(config, lambda container: container.aggregator.get_all())

    if as_json:
        _print_json({
            name: {ticker: item.to_dict() for ticker, item in tickers.items()}
            for name, tickers in data.items()
        })
        return

    table = Table(title="Snapshot")
    table.add_column("Exchange", style="cyan")
    table.add_column("Tickers", justify="right")
    table.add_column("Status")
    for name, tickers in data.items():
        status = "[green]ACTIVE[/green]" if tickers else "[red]EMPTY[/red]"
        table.add_row(name, str(len(tickers)), status)
    console.print(table)


@app.command()
def summaries(
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show every ticker with its funding rate on each exchange."""
    container, result = _run_query(config, lambda container: container.aggregator.get_summaries())

    if as_json:
        _print_json([summary.to_dict() for summary in result])
        return

    if not result:
        console.print("[yellow]No tickers returned[/yellow]")
        return
    console.print(_summary_table("Funding rates", result, container.aggregator.exchange_names))
    console.print(f"\n[bold]Total tickers:[/bold] {len(result)}")


@app.command()
def dashboard(
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show the ticker by exchange grid of rates and next payouts."""
    container, grid = _run_query(config, lambda container: container.aggregator.get_dashboard())

    if as_json:
        _print_json({
            ticker: {name: quote.to_dict() if quote else None for name, quote in quotes.items()}
            for ticker, quotes in grid.items()
        })
        return

    if not grid:
        console.print("[yellow]No tickers returned[/yellow]")
        return

    exchange_names = container.aggregator.exchange_names
    table = Table(title="Dashboard")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    for name in exchange_names:
        table.add_column(name, justify="right")
    for ticker, quotes in grid.items():
        cells = []
        for name in exchange_names:
            quote = quotes.get(name)
            cells.append(f"{format_rate(quote.funding_rate)} @ {format_time(quote.next_funding_time)}" if quote else "-")
        table.add_row(ticker, *cells)
    console.print(table)


@app.command()
def arbitrage(
    min_delta: Optional[float] = typer.Option(None, min=0.0, help="Minimum rate spread as a fraction (0.001 = 0.1%)"),
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List tickers whose funding rates diverge across exchanges."""

    async def _call(container: "AppContainer"):
        threshold = min_delta if min_delta is not None else container.settings.analytics.min_delta
        return await container.aggregator.get_arbitrage_opportunities(threshold)

    container, result = _run_query(config, _call)

    if as_json:
        _print_json([summary.to_dict() for summary in result])
        return

    if not result:
        console.print("[yellow]No arbitrage opportunities[/yellow]")
        return
    console.print(_summary_table("Arbitrage opportunities", result, container.aggregator.exchange_names))


@app.command()
def payout_times(
    min_abs_funding: Optional[float] = typer.Option(None, min=0.0, help="Require some |rate| at or above this fraction"),
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List tickers whose next settlements fall in different hours."""

    async def _call(container: "AppContainer"):
        analytics = container.settings.analytics
        threshold = min_abs_funding if min_abs_funding is not None else analytics.min_abs_funding_rate
        return await container.aggregator.get_different_payout_times(threshold)

    container, result = _run_query(config, _call)

    if as_json:
        _print_json([summary.to_dict() for summary in result])
        return

    if not result:
        console.print("[yellow]No payout-time mismatches[/yellow]")
        return

    names = container.aggregator.exchange_names
    table = Table(title="Different payout times (UTC)")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    for name in names:
        table.add_column(name, justify="right")
    for summary in result:
        cells = []
        for name in names:
            quote = summary.exchanges.get(name)
            cells.append(f"{format_time(quote.next_funding_time)} {format_rate(quote.funding_rate)}" if quote else "-")
        table.add_row(summary.ticker, *cells)
    console.print(table)


@app.command()
def time_shift(
    min_delta: Optional[float] = typer.Option(None, min=0.0, help="Minimum rate spread as a fraction"),
    min_gap: Optional[float] = typer.Option(None, min=0.0, help="Minimum settlement gap in minutes"),
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List tickers with both a rate spread and a settlement-time gap."""

    async def _call(container: "AppContainer"):
        analytics = container.settings.analytics
        delta = min_delta if min_delta is not None else analytics.min_delta
        gap = min_gap if min_gap is not None else analytics.min_time_gap_minutes
        return await container.aggregator.get_time_shift_opportunities(delta, gap)

    _, result = _run_query(config, _call)

    if as_json:
        _print_json([opportunity.to_dict() for opportunity in result])
        return

    if not result:
        console.print("[yellow]No time-shift opportunities[/yellow]")
        return

    table = Table(title="Time-shift opportunities")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    table.add_column("Diff", style="red", justify="right")
    table.add_column("Gap (min)", justify="right")
    table.add_column("First", style="green")
    table.add_column("Last", style="magenta")
    for opportunity in result:
        table.add_row(
            opportunity.ticker,
            format_rate(opportunity.funding_rate_diff),
            f"{opportunity.time_difference_minutes:.0f}",
            f"{opportunity.earliest_exchange} {format_time(opportunity.earliest_funding_time)}",
            f"{opportunity.latest_exchange} {format_time(opportunity.latest_funding_time)}",
        )
    console.print(table)


@app.command()
def health(
    probe: bool = typer.Option(False, help="Use lightweight probe endpoints instead of a full fetch"),
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show which exchanges are currently answering."""
    _, result = _run_query(config, lambda container: container.aggregator.check_health(probe=probe))

    if as_json:
        _print_json(result)
        return

    table = Table(title="Exchange health")
    table.add_column("Exchange", style="cyan")
    table.add_column("Status")
    for name, healthy in result.items():
        table.add_row(name, "[green]OK[/green]" if healthy else "[red]DOWN[/red]")
    console.print(table)


@app.command()
def stats(
    config: Optional[Path] = typer.Option(None, help=CONFIG_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show ticker coverage per exchange."""
    _, result = _run_query(config, lambda container: container.aggregator.get_stats())

    if as_json:
        _print_json(result.to_dict())
        return

    table = Table(title=f"Coverage at {result.timestamp}")
    table.add_column("Exchange", style="cyan")
    table.add_column("Tickers", justify="right")
    table.add_column("Status")
    for exchange in result.exchanges:
        table.add_row(exchange.name, str(exchange.tickers_count), exchange.status)
    console.print(table)
    console.print(f"\n[bold]Unique tickers:[/bold] {result.total_unique_tokens}")


def main():
    """CLI main entry point."""
    app()


if __name__ == "__main__":
    main()
