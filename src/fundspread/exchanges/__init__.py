"""Exchange adapters and connectivity layer."""

from .protocol import ExchangeClient, NormalizedTicker, TickerMap
from .kinds import ExchangeKind, SymbolQuirks, QUIRKS, normalize_symbol, symbol_normalizer
from .normalization import is_valid_ticker, calculate_next_funding_time
from .diagnostics import Diagnostics, DiagnosticsCounter, NULL_DIAGNOSTICS
from .factory import create_exchange_client, EXCHANGE_CLIENTS
from .base import BaseExchangeClient, ExchangeRequestError, ProxyConfig

__all__ = [
    "ExchangeClient",
    "NormalizedTicker",
    "TickerMap",
    "ExchangeKind",
    "SymbolQuirks",
    "QUIRKS",
    "normalize_symbol",
    "symbol_normalizer",
    "is_valid_ticker",
    "calculate_next_funding_time",
    "Diagnostics",
    "DiagnosticsCounter",
    "NULL_DIAGNOSTICS",
    "create_exchange_client",
    "EXCHANGE_CLIENTS",
    "BaseExchangeClient",
    "ExchangeRequestError",
    "ProxyConfig",
]
