#!/usr/bin/env python3
"""
Shared timestamp utilities for consistent time handling.

All timestamps are stored as Unix timestamps (float, seconds since epoch) in UTC,
both for session expiry and for the capture time of pending mentions.
"""

import time
from datetime import datetime, timezone
from typing import Union, Optional


def now_timestamp() -> float:
    """
    Get current Unix timestamp in UTC.

    Returns:
        Float Unix timestamp (seconds since epoch)
    """
    return time.time()


def to_timestamp(dt: Optional[Union[datetime, str, float, int]]) -> Optional[float]:
    """
    Convert various time formats to Unix timestamp.

    Args:
        dt: Can be:
            - datetime object (assumed local if naive)
            - ISO string, as sent by Discord ("2025-09-04T14:30:00.123Z")
            - Unix timestamp (float or int)
            - None

    Returns:
        Unix timestamp as float, or None if input is None
    """
    if dt is None:
        return None

    if isinstance(dt, (int, float)):
        return float(dt)

    if isinstance(dt, str):
        try:
            if 'T' in dt:
                parsed = datetime.fromisoformat(dt.replace('Z', '+00:00'))
            else:
                # SQLite format "YYYY-MM-DD HH:MM:SS"
                parsed = datetime.strptime(dt, '%Y-%m-%d %H:%M:%S')
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.timestamp()
        except (ValueError, AttributeError) as e:
            raise ValueError(f"Cannot parse timestamp string: {dt}") from e

    if isinstance(dt, datetime):
        return dt.timestamp()

    raise TypeError(f"Cannot convert {type(dt)} to timestamp")


def iso_string(ts: Optional[float]) -> Optional[str]:
    """
    Convert Unix timestamp to ISO format string (UTC).

    Args:
        ts: Unix timestamp

    Returns:
        ISO format string or None
    """
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
