"""Base client class for exchange market-data clients."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterable

import aiohttp

from .diagnostics import Diagnostics, DiagnosticsCounter
from .kinds import QUIRKS, ExchangeKind, SymbolQuirks
from .protocol import TickerMap

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fundspread/1.0"


class ExchangeRequestError(Exception):
    """A market-data request answered with a non-200 status."""

    def __init__(self, exchange: str, url: str, status: int):
        super().__init__(f"{exchange}: GET {url} returned HTTP {status}")
        self.exchange = exchange
        self.url = url
        self.status = status


class ProxyConfig:
    """HTTP proxy configuration."""

    def __init__(self, url: str | None = None, username: str | None = None, password: str | None = None):
        self.url = url
        self.username = username
        self.password = password

    @property
    def proxy_url(self) -> str | None:
        if not self.url:
            return None
        if self.username and self.password:
            protocol = self.url.split("://")[0] if "://" in self.url else "http"
            rest = self.url.split("://")[1] if "://" in self.url else self.url
            return f"{protocol}://{self.username}:{self.password}@{rest}"
        return self.url


class BaseExchangeClient(ABC):
    """Base class for all exchange clients.

    Subclasses implement ``_fetch_tickers``; this class owns the HTTP
    session, per-call timeouts, and the rule that ``fetch`` never raises.
    """

    kind: ExchangeKind
    base_url: str = ""
    health_path: str = ""
    health_params: dict[str, str] | None = None
    default_timeout: float = 10.0

    def __init__(
        self,
        *,
        timeout: float | None = None,
        health_timeout: float = 5.0,
        proxy: ProxyConfig | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        **options: Any,
    ):
        """Initialize exchange client.

        Args:
            timeout: Per-request timeout in seconds (default: exchange default)
            health_timeout: Timeout for the health probe in seconds
            proxy: Proxy configuration
            user_agent: User-Agent header sent with every request
            **options: Additional exchange-specific options
        """
        self.name = self.kind.value
        self.timeout = timeout if timeout is not None else self.default_timeout
        self.health_timeout = health_timeout
        self.proxy = proxy or ProxyConfig()
        self.user_agent = user_agent
        self.options = options
        self.session: aiohttp.ClientSession | None = None

    @property
    def quirks(self) -> SymbolQuirks:
        return QUIRKS[self.kind]

    def get_base_url(self) -> str:
        """Get base API URL, overridable through the ``base_url`` option."""
        return self.options.get("base_url") or self.base_url

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            connector = aiohttp.TCPConnector()
            self.session = aiohttp.ClientSession(connector=connector)
        return self.session

    def _get_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """GET a public endpoint and decode its JSON body.

        Raises:
            ExchangeRequestError: If the status is not 200
            aiohttp.ClientError: On transport failures
            asyncio.TimeoutError: If the request exceeds the timeout
        """
        session = await self._ensure_session()
        url = f"{self.get_base_url()}{path}"

        async with session.get(
            url,
            params=params,
            headers=self._get_headers(),
            proxy=self.proxy.proxy_url,
            timeout=aiohttp.ClientTimeout(total=timeout or self.timeout),
        ) as resp:
            if resp.status != 200:
                raise ExchangeRequestError(self.name, url, resp.status)
            return await resp.json(content_type=None)

    async def fetch(self) -> TickerMap:
        """Fetch normalized tickers; any failure yields an empty map."""
        diagnostics = DiagnosticsCounter()
        try:
            result = await self._fetch_tickers(diagnostics)
        except asyncio.TimeoutError:
            logger.warning("%s: request timed out after %.1fs", self.name, self.timeout)
            return {}
        except (aiohttp.ClientError, ExchangeRequestError) as e:
            logger.warning("%s: request failed: %s", self.name, e)
            return {}
        except Exception as e:
            logger.error("%s: unexpected error while fetching: %s", self.name, e, exc_info=True)
            return {}

        logger.info("%s: normalized %d tickers", self.name, len(result))
        logger.debug("%s: %s", self.name, diagnostics.summary())
        return result

    @abstractmethod
    async def _fetch_tickers(self, diagnostics: Diagnostics) -> TickerMap:
        """Issue the exchange's requests and run its adapter."""
        ...

    async def _gather(self, *requests: Awaitable[Any]) -> list[Any]:
        """Await every request to completion, then re-raise the first failure.

        No request is left running against the session once this returns.
        """
        outcomes = await asyncio.gather(*requests, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes

    async def _fetch_each(
        self,
        symbols: Iterable[str],
        fetch_one: Callable[[str], Awaitable[Any]],
        *,
        max_concurrency: int = 10,
    ) -> dict[str, Any]:
        """Run per-symbol lookups concurrently, dropping individual failures.

        Args:
            symbols: Native symbols to look up
            fetch_one: Coroutine function returning the payload or None
            max_concurrency: Maximum requests in flight

        Returns:
            Mapping of native symbol to payload for the lookups that succeeded
        """
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def _bounded(symbol: str) -> tuple[str, Any]:
            async with semaphore:
                return symbol, await fetch_one(symbol)

        outcomes = await asyncio.gather(*(_bounded(s) for s in symbols), return_exceptions=True)

        enriched: dict[str, Any] = {}
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning("%s: enrichment request failed: %s", self.name, outcome)
                continue
            symbol, payload = outcome
            if payload is not None:
                enriched[symbol] = payload

        logger.debug("%s: enriched %d symbols", self.name, len(enriched))
        return enriched

    async def check_health(self) -> bool:
        """Probe the exchange's lightweight health endpoint."""
        try:
            await self._get_json(self.health_path, self.health_params, timeout=self.health_timeout)
        except Exception as e:
            logger.warning("%s: health probe failed: %s", self.name, e)
            return False
        return True

    async def close(self) -> None:
        """Close connections."""
        if self.session:
            await self.session.close()
            self.session = None
