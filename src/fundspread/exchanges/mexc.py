"""MEXC contract market data."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from .base import BaseExchangeClient
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import first_price, resolve_funding_time, to_float
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)


def normalize(
    payload: Any,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Normalize ``/api/v1/contract/ticker`` (``BTC_USDT`` style symbols)."""
    if not isinstance(payload, dict) or payload.get("success") is not True or not isinstance(payload.get("data"), list):
        diagnostics.rejected("envelope without success and data list")
        return {}

    quirks = QUIRKS[ExchangeKind.MEXC]
    result: TickerMap = {}

    for item in payload["data"]:
        if not isinstance(item, dict):
            diagnostics.skipped(item, "malformed entry")
            continue

        native = item.get("symbol")
        ticker = normalize_symbol(native, quirks)
        if ticker is None:
            diagnostics.skipped(native, "unresolved symbol")
            continue
        if ticker in result:
            diagnostics.skipped(native, "duplicate ticker")
            continue

        price = first_price(item.get("fairPrice"), item.get("lastPrice"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        rate = to_float(item.get("fundingRate"))
        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate if rate is not None else 0.0,
            next_funding_time=resolve_funding_time(item.get("nextSettleTime"), now, quirks.funding_hours),
        )

    return result


class MEXCClient(BaseExchangeClient):
    """MEXC contract client."""

    kind = ExchangeKind.MEXC
    base_url = "https://contract.mexc.com"
    health_path = "/api/v1/contract/ping"

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        payload = await self._get_json("/api/v1/contract/ticker")
        return normalize(payload, diagnostics=diagnostics)
