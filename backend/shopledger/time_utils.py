from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value) -> datetime:
    """
    Normalize a timestamp to canonical UTC-naive datetime.

    Accepts:
    - None -> utcnow()
    - datetime: aware -> converted to UTC; naive -> taken as UTC
    - str -> parse_iso_datetime
    """
    if value is None:
        return utcnow()

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, str):
        dt = parse_iso_datetime(value)
        if dt is None:
            raise ValueError("invalid timestamp")
        return dt

    raise ValueError("invalid timestamp")


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.isoformat().replace("+00:00", "Z")


def shop_zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_day_bounds(day: date, zone: tzinfo) -> tuple[datetime, datetime]:
    """
    UTC-naive [start, end) covering one calendar day in the shop's timezone.
    """
    start_local = datetime.combine(day, time.min).replace(tzinfo=zone)
    end_local = datetime.combine(day + timedelta(days=1), time.min).replace(tzinfo=zone)
    return to_utc_naive(start_local), to_utc_naive(end_local)


def local_date(dt: datetime, zone: tzinfo) -> date:
    """Calendar date of a UTC-naive instant, as seen in the shop's timezone."""
    return dt.replace(tzinfo=timezone.utc).astimezone(zone).date()
