from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical). The only clock used for audit timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Current UTC calendar day. Only used for default report windows, never as a business date."""
    return utcnow().date()


def parse_business_date(value) -> date:
    """
    Parse a business day key.

    - date -> returned as-is (datetime is rejected: the key is a calendar day)
    - "YYYY-MM-DD" -> date
    Anything else raises ValueError.
    """
    if isinstance(value, datetime):
        raise ValueError("business date must be a calendar day, not a timestamp")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("business date is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(f"Invalid business date '{value}' (expected YYYY-MM-DD)")


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
