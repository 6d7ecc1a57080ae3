#!/usr/bin/env python3
"""
Key-value store for Anti-Ghost-Ping
Namespaced JSON documents in a single SQLite file, shared by the session
store and the pending mention cache.
"""

import os
import json
from typing import Any, Optional

from .db_helpers import with_connection, aconnect
from ..log_manager import get_logger
from ..utils.time_utils import now_timestamp


class SQLiteStore:
    """Manages SQLite key-value operations, one namespace per logical table"""

    def __init__(self, db_path: str):
        """
        Initialize the store

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = str(db_path)
        self.logger = get_logger('SQLiteStore', component='store')

    async def initialize(self):
        """Create the database file and schema if needed (idempotent)"""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        schema_path = os.path.join(os.path.dirname(__file__), 'schema.sql')
        with open(schema_path, 'r') as f:
            schema = f.read()

        async with aconnect(self.db_path, writer=True) as conn:
            await conn.executescript(schema)
        self.logger.info(f"Store ready at {self.db_path}")

    async def close(self):
        """Close database connection (no-op, connections are per operation)"""
        pass

    def table(self, namespace: str) -> "Table":
        """Get a view of one namespace"""
        return Table(self, namespace)

    # ============================================================================
    # Key-Value Operations
    # ============================================================================

    @with_connection(writer=False)
    async def get(self, conn, namespace: str, key: str) -> Optional[Any]:
        """Get the decoded value stored under key, or None"""
        cursor = await conn.execute(
            "SELECT value FROM kv WHERE namespace = ? AND key = ?",
            (namespace, key)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    @with_connection(writer=True)
    async def set(self, conn, namespace: str, key: str, value: Any,
                  created_at: Optional[float] = None):
        """Store value under key, replacing any existing entry"""
        await conn.execute("""
            INSERT OR REPLACE INTO kv (namespace, key, value, created_at)
            VALUES (?, ?, ?, ?)
        """, (namespace, key, json.dumps(value), created_at if created_at is not None else now_timestamp()))

    @with_connection(writer=True)
    async def delete(self, conn, namespace: str, key: str) -> bool:
        """
        Delete key from namespace.

        Returns:
            True if an entry was removed, False if the key was absent
        """
        cursor = await conn.execute(
            "DELETE FROM kv WHERE namespace = ? AND key = ?",
            (namespace, key)
        )
        return cursor.rowcount > 0

    @with_connection(writer=False)
    async def has(self, conn, namespace: str, key: str) -> bool:
        cursor = await conn.execute(
            "SELECT 1 FROM kv WHERE namespace = ? AND key = ?",
            (namespace, key)
        )
        return await cursor.fetchone() is not None

    @with_connection(writer=False)
    async def count(self, conn, namespace: str) -> int:
        cursor = await conn.execute(
            "SELECT COUNT(*) FROM kv WHERE namespace = ?",
            (namespace,)
        )
        row = await cursor.fetchone()
        return row[0]

    @with_connection(writer=True)
    async def purge_older_than(self, conn, namespace: str, cutoff: float) -> int:
        """
        Delete entries of a namespace created before cutoff.

        Args:
            namespace: Namespace to purge
            cutoff: Unix timestamp; entries with created_at < cutoff are removed

        Returns:
            Number of removed entries
        """
        cursor = await conn.execute(
            "DELETE FROM kv WHERE namespace = ? AND created_at < ?",
            (namespace, cutoff)
        )
        if cursor.rowcount:
            self.logger.info(f"Purged {cursor.rowcount} entries from '{namespace}'")
        return cursor.rowcount


class Table:
    """Namespace-bound view over SQLiteStore"""

    def __init__(self, store: SQLiteStore, namespace: str):
        self.store = store
        self.namespace = namespace

    async def get(self, key: str) -> Optional[Any]:
        return await self.store.get(self.namespace, key)

    async def set(self, key: str, value: Any, created_at: Optional[float] = None):
        await self.store.set(self.namespace, key, value, created_at=created_at)

    async def delete(self, key: str) -> bool:
        return await self.store.delete(self.namespace, key)

    async def has(self, key: str) -> bool:
        return await self.store.has(self.namespace, key)

    async def count(self) -> int:
        return await self.store.count(self.namespace)

    async def purge_older_than(self, cutoff: float) -> int:
        return await self.store.purge_older_than(self.namespace, cutoff)
