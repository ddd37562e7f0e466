from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def local_now() -> datetime:
    """Shop wall-clock 'now' (naive, no timezone normalization)."""
    return datetime.now()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a 'YYYY-MM-DD' string (a full ISO datetime is accepted and truncated).

    - None / "" -> None
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if len(s) == 10:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string into a naive wall-clock datetime.

    Any offset is dropped, not converted: report windows are wall-clock.
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1]

    return datetime.fromisoformat(s).replace(tzinfo=None)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serializes a wall-clock datetime to ISO-8601 (millisecond precision, no offset)."""
    if dt is None:
        return None
    return dt.replace(tzinfo=None).isoformat(timespec="milliseconds")
