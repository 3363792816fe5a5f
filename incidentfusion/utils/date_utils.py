"""Timestamp normalization utilities for IncidentFusion.

Collaborators deliver timestamps as ISO 8601 strings or epoch milliseconds.
Always route them through parse_timestamp() so every datetime in the core is
timezone-aware UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Union

from dateutil import parser as dateutil_parser

TimestampLike = Union[str, int, float, datetime]


def parse_timestamp(value: TimestampLike) -> datetime:
    """Parse an ISO string, epoch-milliseconds number or datetime into aware UTC.

    Naive values are assumed to be UTC.

    Args:
        value: ISO 8601 string, epoch milliseconds, or datetime.

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.lstrip("-").isdigit():
            dt = datetime.fromtimestamp(int(raw) / 1000.0, tz=timezone.utc)
        else:
            try:
                dt = dateutil_parser.isoparse(raw)
            except ValueError:
                try:
                    dt = dateutil_parser.parse(raw)
                except (ValueError, OverflowError) as exc:
                    raise ValueError(f"Unparseable timestamp: {value!r}") from exc
    else:
        raise ValueError(f"Not a timestamp: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def lookback_start(now: datetime, hours: int) -> datetime:
    """Start of a lookback window ending at ``now``.

    Args:
        now: Window end (aware or naive UTC).
        hours: Window length in hours.

    Returns:
        Aware UTC datetime ``hours`` before ``now``.
    """
    return parse_timestamp(now) - timedelta(hours=hours)


def isoformat_z(dt: datetime) -> str:
    """Format an aware datetime as ISO 8601 with a trailing 'Z'."""
    return parse_timestamp(dt).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
