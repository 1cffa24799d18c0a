"""
Epoch-millisecond timestamps.

Every timestamp the service stores or passes around is an ``int`` of
milliseconds since the Unix epoch. Conversion to ``datetime`` happens only
at the API boundary.
"""

import time
from datetime import datetime, timezone
from typing import Optional

MILLIS_PER_SECOND = 1000
MILLIS_PER_MINUTE = 60 * MILLIS_PER_SECOND
MILLIS_PER_DAY = 24 * 60 * MILLIS_PER_MINUTE


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * MILLIS_PER_SECOND)


def to_datetime(millis: Optional[int]) -> Optional[datetime]:
    """Convert epoch millis to an aware UTC datetime (None passes through)."""
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / MILLIS_PER_SECOND, tz=timezone.utc)


def to_iso(millis: Optional[int]) -> Optional[str]:
    dt = to_datetime(millis)
    return dt.isoformat() if dt else None


def days_to_millis(days: int) -> int:
    return days * MILLIS_PER_DAY
