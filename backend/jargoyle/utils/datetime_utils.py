"""Timestamp helpers.

All stored timestamps are offset-naive UTC, matching the ``TIMESTAMP WITHOUT
TIME ZONE`` columns.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_now_after(previous: Optional[datetime]) -> datetime:
    """
    Current UTC time, nudged forward so it is strictly later than ``previous``.

    Two logins inside one clock tick (or a clock that stepped backwards) would
    otherwise record the same or an earlier login time.

    Example:
        >>> earlier = utc_now()
        >>> utc_now_after(earlier) > earlier
        True
    """
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + _TICK
    return now
