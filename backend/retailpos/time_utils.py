# Overview: UTC time helpers for storage, query bounds and JSON output.

"""
All timestamps are stored UTC-naive. Aware values only exist at the edges:
incoming ISO-8601 strings and outgoing JSON (trailing 'Z').
"""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time, tzinfo stripped."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    """Drivers may hand back aware datetimes; compare everything as UTC-naive."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-10-18", "2026-10-18T09:30" and "2026-10-18T09:30:00Z" all parse.

    Blank input gives None; an offset is folded into UTC; a value without
    one is taken as UTC already. Raises ValueError on anything else.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc_naive(datetime.fromisoformat(text))


def end_of_day(dt: Optional[datetime]) -> Optional[datetime]:
    """Extend a date-only bound so a range filter includes the whole day."""
    if dt is None:
        return None
    if dt.time() == time(0, 0):
        return datetime.combine(dt.date(), time.max)
    return dt


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with a trailing 'Z'; microseconds kept so ledger order survives serialization."""
    if dt is None:
        return None
    return as_utc_naive(dt).isoformat() + "Z"
