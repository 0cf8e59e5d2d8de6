"""Concurrent fan-out over exchange clients and the analytics built on it."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from .analytics import (
    AggregatedData,
    ExchangeQuote,
    ExchangeStats,
    TickerSummary,
    TimeShiftOpportunity,
    build_dashboard,
    build_summaries,
    compute_stats,
    find_arbitrage_opportunities,
    find_different_payout_times,
    find_time_shift_opportunities,
)
from .analytics.opportunities import DEFAULT_MIN_TIME_GAP_MINUTES
from .exchanges.protocol import ExchangeClient, TickerMap

logger = logging.getLogger(__name__)


class ExchangeAggregator:
    """Merges every configured exchange's tickers into one structure.

    Every call re-fetches; nothing is cached between calls.
    """

    def __init__(self, clients: Mapping[str, ExchangeClient]):
        self.clients: dict[str, ExchangeClient] = dict(clients)

    @property
    def exchange_names(self) -> list[str]:
        return list(self.clients)

    async def _settle(self, name: str, client: ExchangeClient) -> TickerMap:
        try:
            return await client.fetch()
        except Exception as e:
            logger.error("%s: fetch raised, using empty result: %s", name, e, exc_info=True)
            return {}

    async def get_all(self) -> AggregatedData:
        """Fetch every exchange concurrently.

        Returns:
            One map per configured exchange, in configuration order; an
            exchange that failed contributes an empty map.
        """
        names = self.exchange_names
        results = await asyncio.gather(*(self._settle(name, self.clients[name]) for name in names))
        data: AggregatedData = dict(zip(names, results))
        logger.info(
            "aggregated %s",
            ", ".join(f"{name}={len(tickers)}" for name, tickers in data.items()) or "no exchanges",
        )
        return data

    async def get_summaries(self) -> list[TickerSummary]:
        data = await self.get_all()
        return build_summaries(data, self.exchange_names)

    async def get_arbitrage_opportunities(self, min_delta: float) -> list[TickerSummary]:
        """Tickers on at least two exchanges with a rate spread of ``min_delta`` or more."""
        return find_arbitrage_opportunities(await self.get_summaries(), min_delta)

    async def get_different_payout_times(self, min_abs_funding_rate: float = 0.0) -> list[TickerSummary]:
        return find_different_payout_times(await self.get_summaries(), min_abs_funding_rate)

    async def get_time_shift_opportunities(
        self,
        min_delta: float,
        min_time_gap_minutes: float = DEFAULT_MIN_TIME_GAP_MINUTES,
    ) -> list[TimeShiftOpportunity]:
        return find_time_shift_opportunities(await self.get_summaries(), min_delta, min_time_gap_minutes)

    async def check_health(self, probe: bool = False) -> dict[str, bool]:
        """Report per-exchange health.

        Args:
            probe: Use each client's lightweight health endpoint instead of
                a full fetch

        Returns:
            Exchange name to True when it returned data (or the probe passed)
        """
        if not probe:
            data = await self.get_all()
            return {name: bool(tickers) for name, tickers in data.items()}

        async def _probe(name: str, client: ExchangeClient) -> bool:
            try:
                return await client.check_health()
            except Exception as e:
                logger.warning("%s: health probe raised: %s", name, e)
                return False

        names = self.exchange_names
        results = await asyncio.gather(*(_probe(name, self.clients[name]) for name in names))
        return dict(zip(names, results))

    async def get_stats(self) -> ExchangeStats:
        return compute_stats(await self.get_all())

    async def get_dashboard(self) -> dict[str, dict[str, ExchangeQuote | None]]:
        return build_dashboard(await self.get_summaries())

    async def close(self) -> None:
        """Close every client's HTTP session."""
        for name, client in self.clients.items():
            try:
                await client.close()
            except Exception as e:
                logger.warning("%s: close failed: %s", name, e)
