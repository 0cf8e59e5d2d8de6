"""Funding-rate spread, payout-time and time-shift signals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from ..exchanges.normalization import hour_bucket
from .summaries import TickerSummary

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000
DEFAULT_MIN_TIME_GAP_MINUTES = 30.0


@dataclass
class TimeShiftOpportunity:
    """Ticker whose settlements are far apart and whose rates diverge.

    Attributes:
        ticker: Canonical ticker
        funding_rate_diff: max - min funding rate across reporting exchanges
        long_exchange: Exchange with the lowest rate
        short_exchange: Exchange with the highest rate
        earliest_exchange: Exchange settling first
        latest_exchange: Exchange settling last
        earliest_funding_time: Epoch ms of the earliest settlement
        latest_funding_time: Epoch ms of the latest settlement
        time_difference_minutes: Gap between the two settlements
    """

    ticker: str
    funding_rate_diff: float
    long_exchange: str
    short_exchange: str
    earliest_exchange: str
    latest_exchange: str
    earliest_funding_time: int
    latest_funding_time: int
    time_difference_minutes: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "fundingRateDiff": self.funding_rate_diff,
            "longExchange": self.long_exchange,
            "shortExchange": self.short_exchange,
            "earliestExchange": self.earliest_exchange,
            "latestExchange": self.latest_exchange,
            "earliestFundingTime": self.earliest_funding_time,
            "latestFundingTime": self.latest_funding_time,
            "timeDifferenceMinutes": self.time_difference_minutes,
        }


def _by_diff_desc(item: Any) -> tuple[float, str]:
    return (-item.funding_rate_diff, item.ticker)


def find_arbitrage_opportunities(summaries: Iterable[TickerSummary], min_delta: float) -> list[TickerSummary]:
    """Rate-delta signal.

    Keeps tickers reported by at least two exchanges whose
    ``funding_rate_diff >= min_delta``, sorted by diff descending and then
    by ticker.

    Args:
        summaries: Ticker summaries
        min_delta: Minimum rate spread as a plain fraction (0.001 = 0.1%)
    """
    selected = [
        summary
        for summary in summaries
        if summary.reporting_exchanges >= 2
        and summary.funding_rate_diff is not None
        and summary.funding_rate_diff >= min_delta
    ]
    return sorted(selected, key=_by_diff_desc)


def has_different_payout_times(summary: TickerSummary, min_abs_funding_rate: float = 0.0) -> bool:
    quotes = list(summary.quotes.values())
    if len(quotes) < 2:
        return False
    if len({hour_bucket(quote.next_funding_time) for quote in quotes}) <= 1:
        return False
    if min_abs_funding_rate > 0:
        return any(abs(quote.funding_rate) >= min_abs_funding_rate for quote in quotes)
    return True


def find_different_payout_times(
    summaries: Iterable[TickerSummary],
    min_abs_funding_rate: float = 0.0,
) -> list[TickerSummary]:
    """Tickers whose next settlements fall into different UTC hour buckets.

    With ``min_abs_funding_rate > 0`` at least one exchange must also report
    ``|rate| >= min_abs_funding_rate``. Input order is preserved.
    """
    return [summary for summary in summaries if has_different_payout_times(summary, min_abs_funding_rate)]


def time_shift_for(summary: TickerSummary) -> TimeShiftOpportunity | None:
    """Build the time-shift view of a summary, or None with fewer than two quotes."""
    quotes = summary.quotes
    if len(quotes) < 2 or summary.funding_rate_diff is None:
        return None

    earliest = latest = None
    for name, quote in quotes.items():
        if earliest is None or quote.next_funding_time < quotes[earliest].next_funding_time:
            earliest = name
        if latest is None or quote.next_funding_time > quotes[latest].next_funding_time:
            latest = name

    earliest_time = quotes[earliest].next_funding_time
    latest_time = quotes[latest].next_funding_time
    return TimeShiftOpportunity(
        ticker=summary.ticker,
        funding_rate_diff=summary.funding_rate_diff,
        long_exchange=summary.long_exchange,
        short_exchange=summary.short_exchange,
        earliest_exchange=earliest,
        latest_exchange=latest,
        earliest_funding_time=earliest_time,
        latest_funding_time=latest_time,
        time_difference_minutes=(latest_time - earliest_time) / MINUTE_MS,
    )


def find_time_shift_opportunities(
    summaries: Iterable[TickerSummary],
    min_delta: float,
    min_time_gap_minutes: float = DEFAULT_MIN_TIME_GAP_MINUTES,
) -> list[TimeShiftOpportunity]:
    """Time-shift signal.

    Both the settlement gap (``>= min_time_gap_minutes``) and the rate
    spread (``>= min_delta``) are required. Sorted by diff descending, then
    by ticker.
    """
    selected: list[TimeShiftOpportunity] = []
    for summary in summaries:
        opportunity = time_shift_for(summary)
        if opportunity is None:
            continue
        if opportunity.time_difference_minutes < min_time_gap_minutes:
            continue
        if opportunity.funding_rate_diff < min_delta:
            continue
        selected.append(opportunity)

    logger.debug("time-shift: %d opportunities (gap >= %s min, diff >= %s)", len(selected), min_time_gap_minutes, min_delta)
    return sorted(selected, key=_by_diff_desc)
