"""Cross-exchange funding analytics."""

from .summaries import AggregatedData, ExchangeQuote, TickerSummary, build_summaries, build_dashboard
from .opportunities import (
    TimeShiftOpportunity,
    find_arbitrage_opportunities,
    find_different_payout_times,
    find_time_shift_opportunities,
)
from .stats import ExchangeStats, ExchangeStatus, compute_stats

__all__ = [
    "AggregatedData",
    "ExchangeQuote",
    "TickerSummary",
    "build_summaries",
    "build_dashboard",
    "TimeShiftOpportunity",
    "find_arbitrage_opportunities",
    "find_different_payout_times",
    "find_time_shift_opportunities",
    "ExchangeStats",
    "ExchangeStatus",
    "compute_stats",
]
