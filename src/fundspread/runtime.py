from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .analytics import (
    TickerSummary,
    TimeShiftOpportunity,
    build_summaries,
    find_arbitrage_opportunities,
    find_different_payout_times,
    find_time_shift_opportunities,
)
from .di import AppContainer

logger = logging.getLogger(__name__)


@dataclass
class WatchReport:
    """Signals found in one polling cycle."""

    ticker_counts: dict[str, int] = field(default_factory=dict)
    arbitrage: list[TickerSummary] = field(default_factory=list)
    payout_mismatches: list[TickerSummary] = field(default_factory=list)
    time_shifts: list[TimeShiftOpportunity] = field(default_factory=list)


def format_rate(rate: float | None) -> str:
    if rate is None:
        return "N/A"
    return f"{rate * 100:.4f}%"


async def poll_once(container: AppContainer) -> WatchReport:
    """Fetch once and compute every configured signal."""
    analytics = container.settings.analytics
    top = container.settings.watch.top
    aggregator = container.aggregator

    data = await aggregator.get_all()
    summaries = build_summaries(data, aggregator.exchange_names)

    report = WatchReport(
        ticker_counts={name: len(tickers) for name, tickers in data.items()},
        arbitrage=find_arbitrage_opportunities(summaries, analytics.min_delta)[:top],
        payout_mismatches=find_different_payout_times(summaries, analytics.min_abs_funding_rate),
        time_shifts=find_time_shift_opportunities(
            summaries, analytics.min_delta, analytics.min_time_gap_minutes
        )[:top],
    )

    logger.info(
        "poll: %d tickers, %d arbitrage, %d payout mismatches, %d time-shift",
        len(summaries),
        len(report.arbitrage),
        len(report.payout_mismatches),
        len(report.time_shifts),
    )
    for summary in report.arbitrage:
        logger.info(
            "arbitrage %s diff=%s long=%s short=%s",
            summary.ticker,
            format_rate(summary.funding_rate_diff),
            summary.long_exchange,
            summary.short_exchange,
        )
    for opportunity in report.time_shifts:
        logger.info(
            "time-shift %s diff=%s gap=%.0fmin first=%s last=%s",
            opportunity.ticker,
            format_rate(opportunity.funding_rate_diff),
            opportunity.time_difference_minutes,
            opportunity.earliest_exchange,
            opportunity.latest_exchange,
        )

    return report


async def run(container: AppContainer, *, iterations: int | None = None) -> None:
    """Poll until shutdown is requested, or for ``iterations`` cycles."""
    logger.info("runtime starting")
    logger.debug("settings=%s", container.settings.redacted())

    aggregator = container.aggregator
    if not aggregator.exchange_names:
        logger.error("no exchange clients initialized")
        await asyncio.sleep(0)
        logger.info("runtime stopped")
        return

    interval = container.settings.watch.interval_seconds
    cycles = 0
    try:
        while not container.shutdown.is_set():
            await poll_once(container)
            cycles += 1
            if iterations is not None and cycles >= iterations:
                break
            try:
                await asyncio.wait_for(container.shutdown.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
    finally:
        await aggregator.close()

    logger.info("runtime stopped")
