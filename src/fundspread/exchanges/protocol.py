"""Protocol definition for exchange clients and the normalized ticker shape."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol


@dataclass(frozen=True)
class NormalizedTicker:
    """One exchange's view of one perpetual contract.

    Attributes:
        ticker: Canonical symbol, e.g. 'BTCUSDT'
        price: Mark price if available, else last traded price
        funding_rate: Signed fractional rate (0.0001 = 0.01%)
        next_funding_time: Epoch milliseconds of the next settlement
    """

    ticker: str
    price: float
    funding_rate: float
    next_funding_time: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "price": self.price,
            "fundingRate": self.funding_rate,
            "nextFundingTime": self.next_funding_time,
        }


TickerMap = Dict[str, NormalizedTicker]


class ExchangeClient(Protocol):
    """Protocol for public market-data connectivity."""

    name: str

    async def fetch(self) -> TickerMap:
        """Fetch and normalize every USDT perpetual the exchange lists.

        Never raises: any failure yields an empty map.

        Returns:
            Mapping of canonical ticker to NormalizedTicker
        """
        ...

    async def check_health(self) -> bool:
        """Probe a lightweight endpoint.

        Returns:
            True if the exchange answered in time with status 200
        """
        ...

    async def close(self) -> None:
        """Close the HTTP session."""
        ...
