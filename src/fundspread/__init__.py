"""fundspread: cross-exchange perpetual funding-rate aggregator."""

from .settings import Settings
from .aggregator import ExchangeAggregator
from .exchanges import ExchangeClient, NormalizedTicker, normalize_symbol

__all__ = [
    "Settings",
    "ExchangeAggregator",
    "ExchangeClient",
    "NormalizedTicker",
    "normalize_symbol",
]
