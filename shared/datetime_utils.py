"""
Date/time parsing and calendar-day helpers - framework-agnostic.

All day keys are UTC calendar days. Storage keys use the compact
``YYYYMMDD`` form; exports use ISO ``YYYY-MM-DD``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

_DURATION_RE = re.compile(r"^(\d+)([mhd])$", re.IGNORECASE)
_DURATION_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date/time value into a timezone-aware UTC datetime.

    Accepts:
    - ``None`` → ``None``
    - ``int`` / ``float`` → treated as Unix epoch seconds
    - ``str`` ending in ``"Z"`` → converted to ``+00:00`` before parsing
    - Any ISO 8601 string (``datetime.fromisoformat``)

    Naive datetimes (no ``tzinfo``) are assumed to be UTC.

    Returns:
        A timezone-aware ``datetime`` in UTC, or ``None`` if *value* is ``None``
        or cannot be parsed.
    """
    if value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OSError, OverflowError):
        return None


def parse_duration(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Turn ``30m`` / ``2h`` / ``7d`` or a future ISO datetime into an expiry.

    Returns:
        The absolute UTC expiry, or ``None`` when *text* is empty, malformed,
        or names a moment that is not in the future.
    """
    if not text:
        return None
    now = now or utc_now()

    match = _DURATION_RE.match(text.strip())
    if match:
        amount = int(match.group(1))
        if amount <= 0:
            return None
        unit = _DURATION_UNITS[match.group(2).lower()]
        try:
            return now + timedelta(**{unit: amount})
        except OverflowError:
            return None

    moment = parse_datetime(text)
    if moment is not None and moment > now:
        return moment
    return None


def day_key(day: date) -> str:
    """Storage key fragment for a calendar day (``20240131``)."""
    return day.strftime("%Y%m%d")


def today_key(now: Optional[datetime] = None) -> str:
    return day_key((now or utc_now()).date())


def recent_days(days: int, now: Optional[datetime] = None) -> list[date]:
    """The last *days* UTC calendar days, newest first, today included."""
    today = (now or utc_now()).date()
    return [today - timedelta(days=offset) for offset in range(days)]


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
