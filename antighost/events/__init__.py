"""
Event System for Anti-Ghost-Ping
Delivers transport events to handlers one at a time, in arrival order.
"""

from .dispatcher import EventDispatcher

__all__ = ['EventDispatcher']
