"""Datetime helpers for values going into and coming out of the store."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone


def parse_utc(value) -> datetime | None:
    """Normalise a datetime, ISO string or epoch value to an aware UTC datetime.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns;
    those are taken to be UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        # Epoch milliseconds are what older favorites stored; anything that
        # large cannot be seconds.
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            dt = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    raise TypeError(f"Unsupported datetime value: {value!r}")


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def is_older_than(value, max_age: timedelta | None, *, now: datetime | None = None) -> bool:
    """True when ``value`` is more than ``max_age`` in the past; never true without a max age."""
    if max_age is None:
        return False
    stamp = parse_utc(value)
    if stamp is None:
        return True
    return (now or utcnow()) - stamp > max_age
