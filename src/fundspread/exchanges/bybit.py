"""Bybit v5 linear perpetual market data."""

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


def _ticker_list(payload: Any) -> list | None:
    if not isinstance(payload, dict) or payload.get("retCode") not in (0, "0"):
        return None
    result = payload.get("result")
    if not isinstance(result, dict):
        return None
    items = result.get("list")
    return items if isinstance(items, list) else None


def normalize(
    payload: Any,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Normalize ``/v5/market/tickers?category=linear``.

    A missing funding rate defaults to 0; a missing or zero
    ``nextFundingTime`` falls back to the 0/8/16 UTC schedule.
    Dated futures such as ``BTCUSDT-27DEC24`` do not resolve and are skipped.
    """
    items = _ticker_list(payload)
    if items is None:
        diagnostics.rejected("envelope without retCode 0 and result.list")
        return {}

    quirks = QUIRKS[ExchangeKind.BYBIT]
    result: TickerMap = {}

    for item in items:
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

        price = first_price(item.get("markPrice"), item.get("lastPrice"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        rate = to_float(item.get("fundingRate"))
        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate if rate is not None else 0.0,
            next_funding_time=resolve_funding_time(item.get("nextFundingTime"), now, quirks.funding_hours),
        )

    return result


class BybitClient(BaseExchangeClient):
    """Bybit linear perpetuals client."""

    kind = ExchangeKind.BYBIT
    base_url = "https://api.bybit.com"
    health_path = "/v5/market/tickers"
    health_params = {"category": "linear", "symbol": "BTCUSDT"}

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        payload = await self._get_json("/v5/market/tickers", {"category": "linear"})
        return normalize(payload, diagnostics=diagnostics)
