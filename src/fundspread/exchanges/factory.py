"""Factory for creating exchange client instances."""

from __future__ import annotations

from typing import Any, Type

from .base import BaseExchangeClient, ProxyConfig
from .binance import BinanceClient
from .bingx import BingXClient
from .bitget import BitgetClient
from .bitmex import BitMEXClient
from .bybit import BybitClient
from .kraken import KrakenClient
from .mexc import MEXCClient
from .okx import OKXClient


EXCHANGE_CLIENTS: dict[str, Type[BaseExchangeClient]] = {
    "binance": BinanceClient,
    "bybit": BybitClient,
    "bitget": BitgetClient,
    "bingx": BingXClient,
    "bitmex": BitMEXClient,
    "okx": OKXClient,
    "mexc": MEXCClient,
    "kraken": KrakenClient,
}


def create_exchange_client(
    exchange: str,
    *,
    timeout: float | None = None,
    health_timeout: float = 5.0,
    user_agent: str | None = None,
    proxy: dict[str, Any] | None = None,
    **options: Any,
) -> BaseExchangeClient:
    """Create an exchange client instance.

    Args:
        exchange: Exchange name (binance, bybit, okx, etc.)
        timeout: Per-request timeout in seconds (default: exchange default)
        health_timeout: Timeout for the health probe in seconds
        user_agent: User-Agent header override
        proxy: Proxy configuration (url, username, password)
        **options: Additional exchange-specific options

    Returns:
        Configured exchange client

    Raises:
        ValueError: If exchange is not supported
    """
    exchange_lower = exchange.lower()

    if exchange_lower not in EXCHANGE_CLIENTS:
        supported = ", ".join(EXCHANGE_CLIENTS.keys())
        raise ValueError(
            f"Unsupported exchange: {exchange}. Supported exchanges: {supported}"
        )

    client_class = EXCHANGE_CLIENTS[exchange_lower]

    proxy_config = None
    if proxy:
        proxy_config = ProxyConfig(
            url=proxy.get("url"),
            username=proxy.get("username"),
            password=proxy.get("password"),
        )

    kwargs: dict[str, Any] = {
        "timeout": timeout,
        "health_timeout": health_timeout,
        "proxy": proxy_config,
    }
    if user_agent:
        kwargs["user_agent"] = user_agent

    kwargs.update(options)

    return client_class(**kwargs)
