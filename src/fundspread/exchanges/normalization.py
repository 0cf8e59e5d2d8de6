"""Canonical ticker rules and value parsing shared by all exchange adapters."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

CANONICAL_QUOTE = "USDT"
DEFAULT_FUNDING_HOURS: tuple[int, ...] = (0, 8, 16)
HOUR_MS = 60 * 60 * 1000

_TICKER_RE = re.compile(r"^[A-Z0-9]+USDT$")


def is_valid_ticker(ticker: Any) -> bool:
    """Return True if ``ticker`` is a canonical ``<BASE>USDT`` symbol.

    At least one character of base asset must precede the quote, so the
    ticker is longer than four characters.
    """
    if not isinstance(ticker, str):
        return False
    return bool(_TICKER_RE.match(ticker)) and len(ticker) > len(CANONICAL_QUOTE)


def to_float(value: Any) -> float | None:
    """Parse a numeric field that exchanges send as number or string.

    Returns None for missing, empty, boolean or non-finite values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def to_positive_float(value: Any) -> float | None:
    result = to_float(value)
    if result is None or result <= 0:
        return None
    return result


def first_price(*candidates: Any) -> float | None:
    """Return the first candidate that parses to a price above zero.

    Candidates are given in preference order (mark price first).
    """
    for candidate in candidates:
        price = to_positive_float(candidate)
        if price is not None:
            return price
    return None


def to_timestamp_ms(value: Any) -> int | None:
    """Parse an epoch-milliseconds or ISO-8601 timestamp.

    Returns None when the value is missing, malformed or not positive.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        numeric = to_float(text)
        if numeric is None:
            return _parse_iso_ms(text)
        value = numeric
    number = to_float(value)
    if number is None or number <= 0:
        return None
    return int(number)


def _parse_iso_ms(text: str) -> int | None:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    millis = int(parsed.timestamp() * 1000)
    return millis if millis > 0 else None


def as_utc_datetime(now: datetime | int | float | None = None) -> datetime:
    """Coerce a clock value (datetime or epoch ms) to an aware UTC datetime."""
    if now is None:
        return datetime.now(timezone.utc)
    if isinstance(now, datetime):
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)
    return datetime.fromtimestamp(now / 1000, tz=timezone.utc)


def calculate_next_funding_time(
    now: datetime | int | float | None = None,
    hours: Iterable[int] = DEFAULT_FUNDING_HOURS,
) -> int:
    """Compute the next settlement on a fixed daily UTC schedule.

    Picks the smallest scheduled hour strictly greater than the current UTC
    hour; when none remain today, rolls to the first scheduled hour of the
    next UTC day.

    Args:
        now: Reference time as datetime or epoch milliseconds (default: now)
        hours: Scheduled settlement hours in UTC

    Returns:
        Epoch milliseconds of the next settlement
    """
    current = as_utc_datetime(now)
    schedule = sorted(set(hours)) or list(DEFAULT_FUNDING_HOURS)
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)

    upcoming = [hour for hour in schedule if hour > current.hour]
    if upcoming:
        target = midnight + timedelta(hours=upcoming[0])
    else:
        target = midnight + timedelta(days=1, hours=schedule[0])

    return int(target.timestamp() * 1000)


def resolve_funding_time(
    value: Any,
    now: datetime | int | float | None = None,
    hours: Iterable[int] = DEFAULT_FUNDING_HOURS,
) -> int:
    """Use the exchange-reported next funding time, or the schedule fallback."""
    parsed = to_timestamp_ms(value)
    if parsed is not None:
        return parsed
    return calculate_next_funding_time(now, hours)


def index_by(items: Iterable[Any] | None, key: str) -> dict[str, dict[str, Any]]:
    """Build an exact-match index of dict items by a string field.

    Non-dict items and items without a string key are ignored; the first
    occurrence of a key wins. Anything other than a list or tuple yields
    an empty index.
    """
    index: dict[str, dict[str, Any]] = {}
    if not isinstance(items, (list, tuple)):
        return index
    for item in items:
        if not isinstance(item, dict):
            continue
        value = item.get(key)
        if isinstance(value, str) and value and value not in index:
            index[value] = item
    return index


def hour_bucket(timestamp_ms: int) -> int:
    return timestamp_ms // HOUR_MS


def lookup_row(rows: Any, key: Any) -> Mapping[str, Any]:
    """Return the mapping stored under ``key`` in ``rows``, or an empty dict.

    Used for per-symbol enrichment maps, where both the container and the
    row may be malformed.
    """
    if not isinstance(rows, Mapping) or not isinstance(key, str):
        return {}
    row = rows.get(key)
    return row if isinstance(row, Mapping) else {}
