"""
Timestamp utilities for consistent time handling across the system.
"""

import time
from datetime import datetime
from typing import Optional


def now_ms() -> int:
    """Current time as milliseconds since epoch."""
    return int(time.time() * 1000)


def to_datetime(timestamp_ms: Optional[int] = None) -> datetime:
    """Convert a millisecond timestamp to datetime object.

    Args:
        timestamp_ms: Unix timestamp in milliseconds (optional, uses current time if None)

    Returns:
        datetime object
    """
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    return datetime.fromtimestamp(timestamp_ms / 1000)
