"""Shared helpers for Anti-Ghost-Ping."""

from .time_utils import now_timestamp, to_timestamp, iso_string

__all__ = ['now_timestamp', 'to_timestamp', 'iso_string']
