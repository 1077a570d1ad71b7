"""
Time utilities for ledger timestamps.

Every timestamp the journal stores is a timezone-aware UTC datetime. Naive
datetimes coming in from callers are assumed to already be UTC.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Args:
        ts: Aware or naive datetime (naive values are treated as UTC)

    Returns:
        Aware UTC datetime
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def monotonic_timestamp(candidate: datetime, previous: Optional[datetime]) -> datetime:
    """
    Clamp a new ledger timestamp so it never precedes the previous event.

    Keeps timestamp order and insertion order in agreement when the clock
    steps backwards.
    """
    candidate = ensure_utc(candidate)
    if previous is not None and candidate < previous:
        return previous
    return candidate


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    """ISO8601 representation used in storage and notifications."""
    if ts is None:
        return None
    return ensure_utc(ts).isoformat(timespec="microseconds")


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO8601 timestamp (accepts a trailing 'Z')."""
    if raw is None:
        return None
    return ensure_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
