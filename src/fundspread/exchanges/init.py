"""Exchange client initialization from settings."""

from __future__ import annotations

import logging
from typing import Any, Dict

from .factory import create_exchange_client
from .protocol import ExchangeClient
from ..settings import Settings

logger = logging.getLogger(__name__)


def _proxy_from_settings(settings: Settings) -> dict[str, Any] | None:
    proxy = settings.proxy
    if not proxy.enabled or not proxy.url:
        return None
    return {
        "url": proxy.url,
        "username": proxy.username,
        "password": proxy.password.get_secret_value() if proxy.password else None,
    }


def create_exchange_clients_from_settings(settings: Settings) -> Dict[str, ExchangeClient]:
    """Create exchange clients from settings configuration, in configuration order."""
    clients: Dict[str, ExchangeClient] = {}
    proxy = _proxy_from_settings(settings)

    for exchange_name, exchange_config in settings.exchanges.items():
        if not exchange_config.enabled:
            logger.debug("Exchange %s is disabled, skipping", exchange_name)
            continue

        try:
            client = create_exchange_client(
                exchange=exchange_name,
                timeout=exchange_config.timeout or settings.http.timeout,
                health_timeout=settings.http.health_timeout,
                user_agent=settings.http.user_agent,
                proxy=proxy,
                **exchange_config.options,
            )
            clients[exchange_name] = client
            logger.info("Initialized exchange client for %s", exchange_name)

        except Exception as e:
            logger.error("Failed to initialize exchange client for %s: %s", exchange_name, e)
            continue

    return clients
