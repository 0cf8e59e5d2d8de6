"""Binance USD-M futures market data."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from .base import BaseExchangeClient
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import first_price, index_by, resolve_funding_time, to_float
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)


def normalize(
    exchange_info: Any,
    premium_index: Any,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Join ``exchangeInfo`` contract metadata with ``premiumIndex`` rows.

    Only TRADING, USDT-quoted PERPETUAL contracts are kept, and each row must
    carry a ``lastFundingRate``.

    Args:
        exchange_info: Decoded ``/fapi/v1/exchangeInfo`` body
        premium_index: Decoded ``/fapi/v1/premiumIndex`` body (a list)
        now: Reference time for the fallback funding time
        diagnostics: Sink for skipped instruments

    Returns:
        Mapping of canonical ticker to NormalizedTicker
    """
    if not isinstance(exchange_info, dict) or not isinstance(exchange_info.get("symbols"), list):
        diagnostics.rejected("exchangeInfo has no symbols list")
        return {}
    if not isinstance(premium_index, list):
        diagnostics.rejected("premiumIndex is not a list")
        return {}

    quirks = QUIRKS[ExchangeKind.BINANCE]
    contracts = index_by(exchange_info["symbols"], "symbol")
    result: TickerMap = {}

    for row in premium_index:
        if not isinstance(row, dict):
            diagnostics.skipped(row, "malformed entry")
            continue

        native = row.get("symbol")
        contract = contracts.get(native) if isinstance(native, str) else None
        if contract is None:
            diagnostics.skipped(native, "not in exchangeInfo")
            continue
        if contract.get("contractType") != "PERPETUAL":
            diagnostics.skipped(native, "not perpetual")
            continue
        if contract.get("quoteAsset") != "USDT":
            diagnostics.skipped(native, "not USDT-quoted")
            continue
        if contract.get("status") != "TRADING":
            diagnostics.skipped(native, "not trading")
            continue

        ticker = normalize_symbol(native, quirks)
        if ticker is None:
            diagnostics.skipped(native, "unresolved symbol")
            continue
        if ticker in result:
            diagnostics.skipped(native, "duplicate ticker")
            continue

        price = first_price(row.get("markPrice"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        rate = to_float(row.get("lastFundingRate"))
        if rate is None:
            diagnostics.skipped(native, "no funding rate")
            continue

        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate,
            next_funding_time=resolve_funding_time(row.get("nextFundingTime"), now, quirks.funding_hours),
        )

    return result


class BinanceClient(BaseExchangeClient):
    """Binance USD-M futures client."""

    kind = ExchangeKind.BINANCE
    base_url = "https://fapi.binance.com"
    health_path = "/fapi/v1/exchangeInfo"

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        exchange_info, premium_index = await self._gather(
            self._get_json("/fapi/v1/exchangeInfo"),
            self._get_json("/fapi/v1/premiumIndex"),
        )
        return normalize(exchange_info, premium_index, diagnostics=diagnostics)
