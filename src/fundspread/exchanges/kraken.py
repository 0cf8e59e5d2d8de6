"""Kraken Futures perpetual market data."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from .base import BaseExchangeClient
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import calculate_next_funding_time, first_price, to_float
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)


def normalize(
    payload: Any,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Normalize ``/derivatives/api/v3/tickers``.

    Keeps tradable ``perpetual`` USD contracts with a ``PF_``/``PI_``
    prefix. Kraken publishes no next funding time here and settles hourly,
    so the next whole UTC hour is used. The rate is ``relativeFundingRate``,
    the fractional rate; ``fundingRate`` is an absolute amount per contract
    and is ignored.
    """
    if not isinstance(payload, dict) or payload.get("result") != "success" or not isinstance(payload.get("tickers"), list):
        diagnostics.rejected("envelope without result success and tickers list")
        return {}

    quirks = QUIRKS[ExchangeKind.KRAKEN]
    next_funding_time = calculate_next_funding_time(now, quirks.funding_hours)
    result: TickerMap = {}

    for item in payload["tickers"]:
        if not isinstance(item, dict):
            diagnostics.skipped(item, "malformed entry")
            continue

        native = item.get("symbol")
        if item.get("tag") != "perpetual":
            diagnostics.skipped(native, "not perpetual")
            continue
        if item.get("suspended") or item.get("postOnly"):
            diagnostics.skipped(native, "not tradable")
            continue
        if not isinstance(native, str) or not native.upper().startswith(quirks.strip_prefixes):
            diagnostics.skipped(native, "not a perpetual product")
            continue
        pair = item.get("pair")
        if not isinstance(pair, str) or "USD" not in pair.upper():
            diagnostics.skipped(native, "not USD-quoted")
            continue

        ticker = normalize_symbol(native, quirks)
        if ticker is None:
            diagnostics.skipped(native, "unresolved symbol")
            continue
        if ticker in result:
            diagnostics.skipped(native, "duplicate ticker")
            continue

        price = first_price(item.get("markPrice"), item.get("last"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        rate = to_float(item.get("relativeFundingRate"))
        if rate is None:
            diagnostics.skipped(native, "no funding rate")
            continue

        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate,
            next_funding_time=next_funding_time,
        )

    return result


class KrakenClient(BaseExchangeClient):
    """Kraken Futures client."""

    kind = ExchangeKind.KRAKEN
    base_url = "https://futures.kraken.com"
    health_path = "/derivatives/api/v3/instruments/status"
    default_timeout = 15.0

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        payload = await self._get_json("/derivatives/api/v3/tickers")
        return normalize(payload, diagnostics=diagnostics)
