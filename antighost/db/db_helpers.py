#!/usr/bin/env python3
"""
Database connection helpers for anti-ghost-ping
Provides decorators for automatic connection management
"""

import functools
import sqlite3
import aiosqlite
from contextlib import asynccontextmanager

from ..exceptions import StorageError


@asynccontextmanager
async def aconnect(db_path: str, writer: bool = False):
    """
    Asynchronous database connection context manager.

    sqlite3 failures raised while the connection is open are re-raised as
    StorageError.

    Args:
        db_path: Path to SQLite database
        writer: If True, commits changes on exit
    """
    try:
        conn = await aiosqlite.connect(db_path)
    except sqlite3.Error as e:
        raise StorageError(f"Cannot open database {db_path}: {e}") from e
    try:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")

        yield conn

        if writer:
            await conn.commit()
    except sqlite3.Error as e:
        if writer:
            await conn.rollback()
        raise StorageError(str(e)) from e
    except Exception:
        if writer:
            await conn.rollback()
        raise
    finally:
        await conn.close()


def with_connection(writer: bool = False):
    """
    Decorator that provides a database connection to the decorated method.

    Args:
        writer: If True, commits changes after successful execution
    """
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            async with aconnect(self.db_path, writer=writer) as conn:
                return await fn(self, conn, *args, **kwargs)
        return wrapper
    return decorator
