"""Per-ticker cross-exchange summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..exchanges.protocol import NormalizedTicker, TickerMap

AggregatedData = dict[str, TickerMap]


@dataclass(frozen=True)
class ExchangeQuote:
    """One exchange's view of one ticker inside a summary."""

    price: float
    funding_rate: float
    next_funding_time: int

    @classmethod
    def from_ticker(cls, ticker: NormalizedTicker) -> "ExchangeQuote":
        return cls(
            price=ticker.price,
            funding_rate=ticker.funding_rate,
            next_funding_time=ticker.next_funding_time,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": self.price,
            "fundingRate": self.funding_rate,
            "nextFundingTime": self.next_funding_time,
        }


@dataclass
class TickerSummary:
    """Cross-exchange view of one canonical ticker.

    ``exchanges`` has one key per configured exchange, in configuration
    order, with None where the exchange does not report the ticker.
    """

    ticker: str
    exchanges: dict[str, ExchangeQuote | None] = field(default_factory=dict)
    min_funding_rate: float | None = None
    max_funding_rate: float | None = None
    funding_rate_diff: float | None = None
    long_exchange: str | None = None
    short_exchange: str | None = None

    @property
    def quotes(self) -> dict[str, ExchangeQuote]:
        """Reporting exchanges only."""
        return {name: quote for name, quote in self.exchanges.items() if quote is not None}

    @property
    def reporting_exchanges(self) -> int:
        return len(self.quotes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "exchanges": {
                name: quote.to_dict() if quote is not None else None
                for name, quote in self.exchanges.items()
            },
            "minFundingRate": self.min_funding_rate,
            "maxFundingRate": self.max_funding_rate,
            "fundingRateDiff": self.funding_rate_diff,
            "longExchange": self.long_exchange,
            "shortExchange": self.short_exchange,
            "reportingExchanges": self.reporting_exchanges,
        }


def summarize_ticker(ticker: str, data: Mapping[str, TickerMap], exchange_names: Iterable[str]) -> TickerSummary:
    summary = TickerSummary(ticker=ticker)

    for name in exchange_names:
        normalized = data.get(name, {}).get(ticker)
        quote = ExchangeQuote.from_ticker(normalized) if normalized is not None else None
        summary.exchanges[name] = quote
        if quote is None:
            continue

        # Strict comparisons keep the first exchange in configuration order on ties.
        if summary.min_funding_rate is None or quote.funding_rate < summary.min_funding_rate:
            summary.min_funding_rate = quote.funding_rate
            summary.long_exchange = name
        if summary.max_funding_rate is None or quote.funding_rate > summary.max_funding_rate:
            summary.max_funding_rate = quote.funding_rate
            summary.short_exchange = name

    if summary.min_funding_rate is not None and summary.max_funding_rate is not None:
        summary.funding_rate_diff = summary.max_funding_rate - summary.min_funding_rate

    return summary


def build_summaries(
    data: Mapping[str, TickerMap],
    exchange_names: Iterable[str] | None = None,
) -> list[TickerSummary]:
    """Build one summary per ticker in the union of all exchanges, sorted by ticker.

    Args:
        data: Exchange name to normalized ticker map
        exchange_names: Column order (default: the order of ``data``)
    """
    names = list(exchange_names) if exchange_names is not None else list(data)
    tickers = sorted({ticker for name in names for ticker in data.get(name, {})})
    return [summarize_ticker(ticker, data, names) for ticker in tickers]


def build_dashboard(summaries: Iterable[TickerSummary]) -> dict[str, dict[str, ExchangeQuote | None]]:
    """Ticker to per-exchange quote grid."""
    return {summary.ticker: dict(summary.exchanges) for summary in summaries}
