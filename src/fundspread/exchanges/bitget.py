"""Bitget USDT-M futures market data."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from .base import BaseExchangeClient
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import first_price, index_by, resolve_funding_time, to_float, to_timestamp_ms
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)

PRODUCT_TYPE = "USDT-FUTURES"


def _data_list(payload: Any) -> list | None:
    if not isinstance(payload, dict) or payload.get("code") != "00000":
        return None
    data = payload.get("data")
    return data if isinstance(data, list) else None


def normalize(
    tickers: Any,
    funding: Any = None,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Normalize the ticker list, optionally joined with the funding list.

    Without ``funding`` the rate comes from the ticker itself and defaults
    to 0. With ``funding`` every ticker must have a matching funding row
    carrying a rate, and the row's ``fundingTime`` takes precedence.

    Args:
        tickers: Decoded ``/api/v2/mix/market/tickers`` body
        funding: Decoded ``/api/v2/mix/market/current-fund-rate`` body, or None
        now: Reference time for the fallback funding time
        diagnostics: Sink for skipped instruments
    """
    items = _data_list(tickers)
    if items is None:
        diagnostics.rejected("ticker envelope without code 00000 and data list")
        return {}

    funding_index: dict[str, dict[str, Any]] | None = None
    if funding is not None:
        funding_rows = _data_list(funding)
        if funding_rows is None:
            diagnostics.rejected("funding envelope without code 00000 and data list")
            return {}
        funding_index = index_by(funding_rows, "symbol")

    quirks = QUIRKS[ExchangeKind.BITGET]
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

        price = first_price(item.get("markPrice"), item.get("lastPr"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        next_time: Any = item.get("nextFundingTime")
        if funding_index is None:
            rate = to_float(item.get("fundingRate"))
            if rate is None:
                rate = 0.0
        else:
            row = funding_index.get(native)
            rate = to_float(row.get("fundingRate")) if row else None
            if rate is None:
                diagnostics.skipped(native, "no funding rate")
                continue
            if to_timestamp_ms(row.get("fundingTime")) is not None:
                next_time = row.get("fundingTime")

        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate,
            next_funding_time=resolve_funding_time(next_time, now, quirks.funding_hours),
        )

    return result


class BitgetClient(BaseExchangeClient):
    """Bitget USDT-M futures client.

    Set the ``join_funding`` option to also request the current funding
    list and join it by symbol.
    """

    kind = ExchangeKind.BITGET
    base_url = "https://api.bitget.com"
    health_path = "/api/v2/public/time"

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        params = {"productType": PRODUCT_TYPE}
        if not self.options.get("join_funding", False):
            tickers = await self._get_json("/api/v2/mix/market/tickers", params)
            return normalize(tickers, diagnostics=diagnostics)

        tickers, funding = await self._gather(
            self._get_json("/api/v2/mix/market/tickers", params),
            self._get_json("/api/v2/mix/market/current-fund-rate", params),
        )
        return normalize(tickers, funding, diagnostics=diagnostics)
