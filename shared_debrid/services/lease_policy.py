from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any

DEFAULT_HOLDER = "Grandma"
DEFAULT_SESSION_MINUTES = 180
DEFAULT_FILE_NAME = "shared-debrid.json"
EPOCH_START = datetime(1970, 1, 1, tzinfo=timezone.utc)
LATEST_INSTANT = datetime.max.replace(microsecond=999000, tzinfo=timezone.utc)

_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_number(value: Any) -> float | None:
    # bool is an int subclass but never a duration
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_session_minutes(value: Any, default: float = DEFAULT_SESSION_MINUTES) -> float:
    """Return a usable session length in minutes.

    Finite numbers and numeric strings are clamped to ``>= 0`` and kept
    fractional. Anything else (None, NaN, infinities, words, objects) falls
    back to ``default``.
    """
    number = _to_number(value)
    if number is None:
        return float(default)
    return max(number, 0.0)


def add_minutes(start: datetime, minutes: float) -> datetime:
    """Return ``start + minutes``, saturating at the latest representable instant."""
    try:
        return ensure_utc(start) + timedelta(minutes=minutes)
    except OverflowError:
        return LATEST_INSTANT


def _normalize_fraction(raw: str) -> str:
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    return _FRACTION.sub(lambda m: f"{m.group(1)}.{(m.group(2) + '000000')[:6]}", raw, count=1)


def coerce_instant(value: Any) -> datetime:
    """Parse ``value`` into a UTC instant, falling back to ``EPOCH_START``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(_normalize_fraction(raw))
        except ValueError:
            return EPOCH_START
    else:
        return EPOCH_START

    try:
        parsed = ensure_utc(parsed)
    except OverflowError:
        return EPOCH_START
    # wire format carries milliseconds only
    return parsed.replace(microsecond=parsed.microsecond // 1000 * 1000)


def format_instant(value: datetime) -> str:
    return coerce_instant(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def coerce_holder(value: Any) -> str:
    if value is None:
        return DEFAULT_HOLDER
    return str(value)
