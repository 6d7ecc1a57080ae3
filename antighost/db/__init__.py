"""
Database module for Anti-Ghost-Ping
Handles the SQLite key-value storage behind sessions and pending mentions
"""

from .sqlite_store import SQLiteStore, Table

__all__ = ['SQLiteStore', 'Table']
