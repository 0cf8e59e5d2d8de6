"""Per-exchange coverage statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from ..exchanges.normalization import as_utc_datetime
from ..exchanges.protocol import TickerMap


@dataclass(frozen=True)
class ExchangeStatus:
    name: str
    tickers_count: int

    @property
    def status(self) -> str:
        return "active" if self.tickers_count > 0 else "empty"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "tickersCount": self.tickers_count, "status": self.status}


@dataclass
class ExchangeStats:
    timestamp: str
    exchanges: list[ExchangeStatus] = field(default_factory=list)
    total_unique_tokens: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "exchanges": [exchange.to_dict() for exchange in self.exchanges],
            "totalUniqueTokens": self.total_unique_tokens,
        }


def compute_stats(data: Mapping[str, TickerMap], now: datetime | int | None = None) -> ExchangeStats:
    """Count tickers per exchange and unique tickers overall."""
    timestamp = as_utc_datetime(now).isoformat().replace("+00:00", "Z")
    unique = {ticker for tickers in data.values() for ticker in tickers}
    return ExchangeStats(
        timestamp=timestamp,
        exchanges=[ExchangeStatus(name=name, tickers_count=len(tickers)) for name, tickers in data.items()],
        total_unique_tokens=len(unique),
    )
