#!/usr/bin/env python3
"""
Session Store for Anti-Ghost-Ping

Persists the access token returned by the last successful login so the next
start can authenticate without a fresh authorization prompt.

Responsibilities:
- Load and overwrite the single stored session
- Decide whether the stored token may be reused (expiry strictly in the future)
- NO knowledge of the transport or of how the token is obtained
"""

from typing import Optional

from ..db import SQLiteStore
from ..log_manager import get_logger
from ..models import Session
from ..utils.time_utils import iso_string, now_timestamp


class SessionStore:
    """Single-entry store for the OAuth2 session"""

    NAMESPACE = 'token'
    KEY = 'token'

    def __init__(self, store: SQLiteStore):
        self.table = store.table(self.NAMESPACE)
        self.logger = get_logger('SessionStore', component='store')

    async def load(self) -> Optional[Session]:
        """Return the persisted session, or None if there is none"""
        data = await self.table.get(self.KEY)
        if not data:
            return None
        try:
            return Session.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable stored session: {e}")
            return None

    async def save(self, session: Session):
        """Overwrite the persisted session"""
        await self.table.set(self.KEY, session.to_dict())
        self.logger.info(f"Stored session, expires at {iso_string(session.expires_at)}")

    async def reusable_token(self, now: Optional[float] = None) -> Optional[str]:
        """
        Get the stored access token if it may still be used.

        An expired session is left in place; the next successful login
        overwrites it.

        Args:
            now: Reference time, defaults to the current time

        Returns:
            The access token, or None when absent or expired
        """
        session = await self.load()
        if session is None:
            return None
        if not session.is_valid(now if now is not None else now_timestamp()):
            self.logger.info("Stored session expired, a fresh authorization is required")
            return None
        return session.access_token
