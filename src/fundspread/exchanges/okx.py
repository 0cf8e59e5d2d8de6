"""OKX perpetual swap market data."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Iterable

import aiohttp

from .base import BaseExchangeClient, ExchangeRequestError
from .diagnostics import NULL_DIAGNOSTICS, Diagnostics
from .kinds import QUIRKS, ExchangeKind, normalize_symbol
from .normalization import first_price, index_by, resolve_funding_time, to_float
from .protocol import NormalizedTicker, TickerMap

logger = logging.getLogger(__name__)

DEFAULT_INST_IDS: tuple[str, ...] = tuple(
    f"{base}-USDT-SWAP"
    for base in (
        "BTC", "ETH", "XRP", "ADA", "SOL", "DOT", "AVAX", "LINK",
        "UNI", "LTC", "BCH", "ETC", "TRX", "ATOM", "ICP",
    )
)


def _data_list(payload: Any) -> list | None:
    if not isinstance(payload, dict) or payload.get("code") not in ("0", 0):
        return None
    data = payload.get("data")
    return data if isinstance(data, list) else None


def normalize(
    tickers: Any,
    funding_rates: Iterable[Any] | None,
    *,
    now: datetime | None = None,
    diagnostics: Diagnostics = NULL_DIAGNOSTICS,
) -> TickerMap:
    """Join the SWAP ticker list with fetched funding-rate rows.

    Instruments without a fetched funding rate are dropped rather than
    reported with a zero placeholder.

    Args:
        tickers: Decoded ``/api/v5/market/tickers?instType=SWAP`` body
        funding_rates: ``data`` rows collected from ``/public/funding-rate``
        now: Reference time for the fallback funding time
        diagnostics: Sink for skipped instruments
    """
    items = _data_list(tickers)
    if items is None:
        diagnostics.rejected("ticker envelope without code 0 and data list")
        return {}

    quirks = QUIRKS[ExchangeKind.OKX]
    funding_index = index_by(funding_rates, "instId")
    result: TickerMap = {}

    for item in items:
        if not isinstance(item, dict):
            diagnostics.skipped(item, "malformed entry")
            continue

        native = item.get("instId")
        ticker = normalize_symbol(native, quirks)
        if ticker is None:
            diagnostics.skipped(native, "unresolved symbol")
            continue
        if ticker in result:
            diagnostics.skipped(native, "duplicate ticker")
            continue

        price = first_price(item.get("markPx"), item.get("last"))
        if price is None:
            diagnostics.skipped(native, "no price")
            continue

        row = funding_index.get(native)
        rate = to_float(row.get("fundingRate")) if row else None
        if rate is None:
            diagnostics.skipped(native, "no funding rate")
            continue

        result[ticker] = NormalizedTicker(
            ticker=ticker,
            price=price,
            funding_rate=rate,
            next_funding_time=resolve_funding_time(row.get("fundingTime"), now, quirks.funding_hours),
        )

    return result


def batched(items: Iterable[str], size: int) -> list[list[str]]:
    items = list(items)
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


class OKXClient(BaseExchangeClient):
    """OKX perpetual swaps client.

    Funding rates are requested for a whitelist of instrument ids
    (option ``inst_ids``) in sequential batches of ``batch_size`` with
    ``batch_delay`` seconds between them.
    """

    kind = ExchangeKind.OKX
    base_url = "https://www.okx.com"
    health_path = "/api/v5/public/funding-rate"
    health_params = {"instId": "BTC-USDT-SWAP"}

    @property
    def inst_ids(self) -> tuple[str, ...]:
        return tuple(self.options.get("inst_ids") or DEFAULT_INST_IDS)

    async def _fetch_funding_rates(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        delay = self.options.get("batch_delay", 0.1)

        for index, batch in enumerate(batched(self.inst_ids, self.options.get("batch_size", 5))):
            if index:
                await asyncio.sleep(delay)
            try:
                payload = await self._get_json("/api/v5/public/funding-rate", {"instId": ",".join(batch)})
            except (aiohttp.ClientError, asyncio.TimeoutError, ExchangeRequestError) as e:
                logger.warning("%s: funding batch %s failed: %s", self.name, ",".join(batch), e)
                continue
            data = _data_list(payload)
            if data is None:
                logger.warning("%s: funding batch %s returned an invalid envelope", self.name, ",".join(batch))
                continue
            rows.extend(row for row in data if isinstance(row, dict))

        logger.debug("%s: fetched %d funding rows", self.name, len(rows))
        return rows

    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        tickers, funding_rates = await self._gather(
            self._get_json("/api/v5/market/tickers", {"instType": "SWAP"}),
            self._fetch_funding_rates(),
        )
        return normalize(tickers, funding_rates, diagnostics=diagnostics)
