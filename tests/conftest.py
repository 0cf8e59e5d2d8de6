"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from fundspread.exchanges.protocol import NormalizedTicker

# 2024-01-01 05:30 UTC; the next 0/8/16 settlement is 08:00 the same day.
NOW = datetime(2024, 1, 1, 5, 30, tzinfo=timezone.utc)
NEXT_0800_MS = 1704096000000


def create_async_response(status=200, json_data=None):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data if json_data is not None else {})
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def create_routed_session(routes):
    """Create a mock session whose GET answers by URL path.

    ``routes`` maps a path suffix to a JSON body, an exception to raise,
    or a callable taking the query params and returning a JSON body.
    """
    session = MagicMock()

    def _get(url, params=None, **kwargs):
        for path, answer in routes.items():
            if url.endswith(path):
                if isinstance(answer, BaseException):
                    raise answer
                if callable(answer):
                    answer = answer(params or {})
                    if isinstance(answer, BaseException):
                        raise answer
                return create_async_response(200, answer)
        return create_async_response(404, {})

    session.get = MagicMock(side_effect=_get)
    return session


class FakeExchangeClient:
    """In-memory exchange client for aggregator and CLI tests."""

    def __init__(self, name, tickers=None, *, error=None, healthy=True):
        self.name = name
        self.tickers = dict(tickers or {})
        self.error = error
        self.healthy = healthy
        self.fetch_calls = 0
        self.closed = False

    async def fetch(self):
        self.fetch_calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.tickers)

    async def check_health(self):
        return self.healthy

    async def close(self):
        self.closed = True


def ticker(symbol, rate, next_funding_time=NEXT_0800_MS, price=100.0):
    """Build a NormalizedTicker with sensible defaults."""
    return NormalizedTicker(
        ticker=symbol,
        price=price,
        funding_rate=rate,
        next_funding_time=next_funding_time,
    )


@pytest.fixture
def now():
    """Fixed reference time for fallback funding times."""
    return NOW


@pytest.fixture
def async_response():
    """Factory for mock aiohttp responses."""
    return create_async_response


@pytest.fixture
def routed_session():
    """Factory for mock sessions routed by URL path."""
    return create_routed_session


@pytest.fixture
def fake_client():
    """Factory for in-memory exchange clients."""
    return FakeExchangeClient


@pytest.fixture
def make_ticker():
    """Factory for normalized tickers."""
    return ticker
