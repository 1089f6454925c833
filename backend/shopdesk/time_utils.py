# Overview: UTC clock, ISO-8601 parsing and serialization.

"""
All stored datetimes are naive UTC. The API accepts ISO-8601 with or
without an offset and always answers with a trailing 'Z'.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: str | None) -> datetime | None:
    """
    Query-string datetime to naive UTC.

    Blank or missing gives None. A bare date means midnight UTC; values
    without an offset are taken as UTC. Raises ValueError when unparsable.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: datetime | None) -> str | None:
    """Seconds precision, e.g. 2026-10-18T09:30:00Z."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a UTC calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
