"""ISO 8601 datetime conversion utilities.

This module centralizes all transformations between Python datetime objects,
ISO 8601 strings and Unix timestamps. All timestamp operations should use
these functions to ensure consistency across the codebase.
"""

import math
from datetime import datetime, UTC


def to_timestamp(dt: datetime) -> str:
    """Convert datetime to ISO 8601 UTC timestamp string."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    # Fixed precision keeps stored timestamps lexically ordered
    return dt.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


def to_datetime(timestamp: str) -> datetime:
    """Convert ISO 8601 UTC timestamp string to datetime."""
    return datetime.fromisoformat(timestamp.replace('Z', '+00:00'))


def utcnow() -> datetime:
    """Get current time as an aware UTC datetime."""
    return datetime.now(UTC)


def now() -> str:
    """Get current UTC timestamp as ISO 8601 string."""
    return to_timestamp(utcnow())


def now_unix() -> int:
    """Get current time as integer Unix timestamp (JWT iat/exp format)."""
    return int(utcnow().timestamp())


def to_unix(dt: datetime) -> int:
    """Convert datetime to integer Unix timestamp."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def to_unix_ceil(dt: datetime) -> int:
    """Convert datetime to Unix timestamp, rounding any fraction up."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return math.ceil(dt.timestamp())


def from_unix(ts: int) -> datetime:
    """Convert Unix timestamp to aware UTC datetime."""
    return datetime.fromtimestamp(ts, UTC)
