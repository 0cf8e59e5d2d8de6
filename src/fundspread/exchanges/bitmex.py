"""BitMEX perpetual swap market data."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from .base import BaseExchangeClient
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import first_price, lookup_row, resolve_funding_time, to_float
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)

PERPETUAL_TYPE = "FFWCSX"
LINEAR_SETTLEMENT = "USDt"
INVERSE_SETTLEMENT = "XBt"

DEFAULT_SYMBOLS: tuple[str, ...] = (
    "XBTUSD", "ETHUSD", "SOLUSD", "ADAUSD", "XRPUSD",
    "LTCUSD", "LINKUSD", "DOGEUSD", "AVAXUSD", "DOTUSD",
)


def _is_perpetual(instrument: dict[str, Any]) -> bool:
    typ = instrument.get("typ")
    if typ is not None:
        return typ == PERPETUAL_TYPE
    symbol = instrument.get("symbol")
    return isinstance(symbol, str) and "USD" in symbol and not instrument.get("settle")


def normalize(
    instruments: Any,
    enrichment: Mapping[str, Mapping[str, Any]] | None = None,
    *,
    include_inverse: bool = True,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Normalize ``/instrument/active`` with optional per-symbol funding rows.

    USDT-settled linear perpetuals are taken first. Coin-settled inverse
    perpetuals (``XBtUSD``-style) are folded in afterwards when
    ``include_inverse`` is set, only for tickers no linear contract already
    covers. The rate comes from the enrichment map, then the instrument,
    then defaults to 0.

    Args:
        instruments: Decoded instrument list
        enrichment: Native symbol to latest ``/funding`` row
        include_inverse: Fold inverse USD perpetuals into the USDT view
        now: Reference time for the fallback funding time
        diagnostics: Sink for skipped instruments
    """
    if not isinstance(instruments, list):
        diagnostics.rejected("instrument response is not a list")
        return {}

    quirks = QUIRKS[ExchangeKind.BITMEX]
    linear: list[dict[str, Any]] = []
    inverse: list[dict[str, Any]] = []

    for item in instruments:
        if not isinstance(item, dict):
            diagnostics.skipped(item, "malformed entry")
            continue
        native = item.get("symbol")
        if not _is_perpetual(item):
            diagnostics.skipped(native, "not perpetual")
            continue
        if item.get("state") != "Open":
            diagnostics.skipped(native, "not open")
            continue
        settlement = item.get("settlCurrency")
        if settlement == LINEAR_SETTLEMENT:
            linear.append(item)
        elif settlement == INVERSE_SETTLEMENT and include_inverse:
            inverse.append(item)
        else:
            diagnostics.skipped(native, "unsupported settlement")

    result: TickerMap = {}
    for item in linear + inverse:
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

        funding_row = lookup_row(enrichment, native)
        rate = to_float(funding_row.get("fundingRate"))
        if rate is None:
            rate = to_float(item.get("fundingRate"))

        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate if rate is not None else 0.0,
            next_funding_time=resolve_funding_time(item.get("fundingTimestamp"), now, quirks.funding_hours),
        )

    return result


class BitMEXClient(BaseExchangeClient):
    """BitMEX perpetual swaps client."""

    kind = ExchangeKind.BITMEX
    base_url = "https://www.bitmex.com"
    health_path = "/api/v1/instrument"
    health_params = {"symbol": "XBTUSD", "count": "1"}

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self.options.get("symbols") or DEFAULT_SYMBOLS)

    async def _fetch_funding(self, symbol: str) -> dict[str, Any] | None:
        rows = await self._get_json(
            "/api/v1/funding",
            {"symbol": symbol, "count": "1", "reverse": "true"},
            timeout=self.options.get("enrichment_timeout", 5.0),
        )
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            return rows[0]
        return None

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        instruments, enrichment = await self._gather(
            self._get_json("/api/v1/instrument/active"),
            self._fetch_each(
                self.symbols,
                self._fetch_funding,
                max_concurrency=self.options.get("max_concurrency", 10),
            ),
        )
        return normalize(
            instruments,
            enrichment,
            include_inverse=self.options.get("include_inverse", True),
            diagnostics=diagnostics,
        )
