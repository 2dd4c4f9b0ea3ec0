"""Timestamp and date-bound helpers.

Converts the inventory's ``YYYY-MM-DD`` date filters into inclusive, timezone-aware
datetime bounds and normalizes stored ISO-8601 timestamps.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, tzinfo

END_OF_DAY = time(23, 59, 59, 999999)


def parse_iso_dt(s: str) -> datetime:
    """Parse ISO8601 datetime. If tz is missing, assume UTC."""
    if not isinstance(s, str):
        raise TypeError(f"Expected an ISO8601 string, got {type(s).__name__}")
    return as_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` in UTC; naive values are taken to be UTC already."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_iso_dt(dt: datetime) -> str:
    """Format a datetime as UTC ISO8601 with a trailing ``Z``."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def local_tz() -> tzinfo:
    """Return the process-local timezone."""
    return datetime.now().astimezone().tzinfo or UTC


def day_start(s: str, *, tz: tzinfo | None = None) -> datetime:
    """Return 00:00:00 of an ISO date in ``tz`` (local time by default)."""
    d = date.fromisoformat(s)
    return datetime.combine(d, time.min, tzinfo=tz or local_tz())


def day_end(s: str, *, tz: tzinfo | None = None) -> datetime:
    """Return the last instant of an ISO date in ``tz`` (local time by default)."""
    d = date.fromisoformat(s)
    return datetime.combine(d, END_OF_DAY, tzinfo=tz or local_tz())


def resolve_date_bounds(
    start_date: str,
    end_date: str,
    *,
    tz: tzinfo | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Resolve inclusive ``[start, end]`` bounds; empty strings mean unbounded."""
    start = day_start(start_date, tz=tz) if start_date else None
    end = day_end(end_date, tz=tz) if end_date else None
    return start, end
