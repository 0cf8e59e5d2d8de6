from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .aggregator import ExchangeAggregator
from .exchanges.protocol import ExchangeClient

if TYPE_CHECKING:
    from .settings import Settings


@dataclass(slots=True)
class AppContainer:
    settings: "Settings"
    aggregator: ExchangeAggregator
    shutdown: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def exchange_clients(self) -> dict[str, ExchangeClient]:
        return self.aggregator.clients


def build_container(settings: "Settings", exchange_clients: dict[str, ExchangeClient] | None = None) -> AppContainer:
    """Build application container around an aggregator of the given clients."""
    clients = exchange_clients or {}
    return AppContainer(
        settings=settings,
        aggregator=ExchangeAggregator(clients),
    )
