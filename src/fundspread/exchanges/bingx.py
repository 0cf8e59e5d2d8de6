"""BingX perpetual swap market data."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from .base import BaseExchangeClient
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import first_price, lookup_row, resolve_funding_time, to_float, to_timestamp_ms
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS: tuple[str, ...] = tuple(
    f"{base}-USDT"
    for base in (
        "BTC", "ETH", "SOL", "AVAX", "ADA", "DOT", "LINK", "UNI", "LTC", "BCH",
        "XRP", "TRX", "ETC", "ATOM", "AAVE", "SUI", "WIF", "INJ", "DOGE", "NEAR",
        "FIL", "MATIC", "SHIB", "ICP", "APT", "OP", "ARB", "BNB", "PEPE", "FLOKI",
    )
)


def _is_ok(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("code") in (0, "0")


def normalize(
    payload: Any,
    enrichment: Mapping[str, Mapping[str, Any]] | None = None,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Normalize the swap ticker list with optional per-symbol premium data.

    The rate comes from the enrichment map first, then the ticker row, then
    defaults to 0; the same precedence applies to mark price and next
    funding time.

    Args:
        payload: Decoded ``/openApi/swap/v2/quote/ticker`` body
        enrichment: Native symbol to ``premiumIndex`` data
        now: Reference time for the fallback funding time
        diagnostics: Sink for skipped instruments
    """
    if not _is_ok(payload) or not isinstance(payload.get("data"), list):
        diagnostics.rejected("envelope without code 0 and data list")
        return {}

    quirks = QUIRKS[ExchangeKind.BINGX]
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

        extra = lookup_row(enrichment, native)
        price = first_price(extra.get("markPrice"), item.get("markPrice"), item.get("lastPrice"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        rate = to_float(extra.get("lastFundingRate"))
        if rate is None:
            rate = to_float(item.get("lastFundingRate", item.get("fundingRate")))
        next_time = extra.get("nextFundingTime")
        if to_timestamp_ms(next_time) is None:
            next_time = item.get("nextFundingTime")

        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate if rate is not None else 0.0,
            next_funding_time=resolve_funding_time(next_time, now, quirks.funding_hours),
        )

    return result


class BingXClient(BaseExchangeClient):
    """BingX perpetual swap client.

    Funding data is not part of the ticker list, so a whitelist of symbols
    (option ``symbols``) is enriched through per-symbol ``premiumIndex``
    calls, at most ``max_concurrency`` at a time.
    """

    kind = ExchangeKind.BINGX
    base_url = "https://open-api.bingx.com"
    health_path = "/openApi/swap/v2/server/time"

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self.options.get("symbols") or DEFAULT_SYMBOLS)

    async def _fetch_premium(self, symbol: str) -> dict[str, Any] | None:
        payload = await self._get_json(
            "/openApi/swap/v2/quote/premiumIndex",
            {"symbol": symbol},
            timeout=self.options.get("enrichment_timeout", 5.0),
        )
        if not _is_ok(payload):
            return None
        data = payload.get("data")
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else None

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        payload, enrichment = await self._gather(
            self._get_json("/openApi/swap/v2/quote/ticker"),
            self._fetch_each(
                self.symbols,
                self._fetch_premium,
                max_concurrency=self.options.get("max_concurrency", 10),
            ),
        )
        return normalize(payload, enrichment, diagnostics=diagnostics)
