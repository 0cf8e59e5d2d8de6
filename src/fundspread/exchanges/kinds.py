"""Per-exchange symbol quirk table and the canonical symbol normalizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .normalization import CANONICAL_QUOTE, DEFAULT_FUNDING_HOURS, is_valid_ticker


class ExchangeKind(Enum):
    """Supported exchanges."""

    BINANCE = "binance"
    BYBIT = "bybit"
    BITGET = "bitget"
    BINGX = "bingx"
    BITMEX = "bitmex"
    OKX = "okx"
    MEXC = "mexc"
    KRAKEN = "kraken"


@dataclass(frozen=True)
class SymbolQuirks:
    """How one exchange spells its instruments.

    Attributes:
        separators: Characters removed between base and quote
        strip_prefixes: Product prefixes removed first (first match only)
        strip_suffixes: Product suffixes removed first (first match only)
        base_aliases: Non-standard base spellings mapped to canonical ones
        fold_usd_quote: Treat a ``<BASE>USD`` quote as ``<BASE>USDT``
        funding_hours: UTC settlement hours used for the fallback funding time
    """

    separators: tuple[str, ...] = ()
    strip_prefixes: tuple[str, ...] = ()
    strip_suffixes: tuple[str, ...] = ()
    base_aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    fold_usd_quote: bool = False
    funding_hours: tuple[int, ...] = DEFAULT_FUNDING_HOURS


_XBT = MappingProxyType({"XBT": "BTC"})

QUIRKS: Mapping[ExchangeKind, SymbolQuirks] = MappingProxyType({
    ExchangeKind.BINANCE: SymbolQuirks(),
    ExchangeKind.BYBIT: SymbolQuirks(),
    ExchangeKind.BITGET: SymbolQuirks(),
    ExchangeKind.BINGX: SymbolQuirks(separators=("-",)),
    ExchangeKind.BITMEX: SymbolQuirks(base_aliases=_XBT, fold_usd_quote=True),
    ExchangeKind.OKX: SymbolQuirks(separators=("-",), strip_suffixes=("-SWAP",)),
    ExchangeKind.MEXC: SymbolQuirks(separators=("_",)),
    ExchangeKind.KRAKEN: SymbolQuirks(
        separators=("_",),
        strip_prefixes=("PF_", "PI_"),
        base_aliases=_XBT,
        fold_usd_quote=True,
        funding_hours=tuple(range(24)),
    ),
})


def normalize_symbol(native: Any, quirks: SymbolQuirks) -> str | None:
    """Convert an exchange-native instrument id to ``<BASE>USDT``.

    Returns None for anything that does not resolve to a valid canonical
    ticker; never raises.
    """
    if not isinstance(native, str):
        return None

    symbol = native.strip().upper()
    for prefix in quirks.strip_prefixes:
        if symbol.startswith(prefix):
            symbol = symbol[len(prefix):]
            break
    for suffix in quirks.strip_suffixes:
        if symbol.endswith(suffix):
            symbol = symbol[: -len(suffix)]
            break
    for separator in quirks.separators:
        symbol = symbol.replace(separator, "")

    if symbol.endswith(CANONICAL_QUOTE):
        base = symbol[: -len(CANONICAL_QUOTE)]
    elif quirks.fold_usd_quote and symbol.endswith("USD"):
        base = symbol[:-3]
    else:
        return None

    base = quirks.base_aliases.get(base, base)
    ticker = f"{base}{CANONICAL_QUOTE}"
    return ticker if is_valid_ticker(ticker) else None


def symbol_normalizer(kind: ExchangeKind):
    """Return a one-argument normalizer bound to ``kind``'s quirks."""
    quirks = QUIRKS[kind]

    def _normalize(native: Any) -> str | None:
        return normalize_symbol(native, quirks)

    _normalize.__name__ = f"normalize_{kind.value}_symbol"
    return _normalize
