#!/usr/bin/env python3
"""
Pending Mention Cache

Durable map of message id -> PendingMention. Entries are created on a
qualifying MESSAGE_CREATE and consumed by the first reported update or delete.
Entries that never see a follow-up event are evicted by sweep().
"""

from typing import Optional

from ..db import SQLiteStore
from ..log_manager import get_logger
from ..models import Message, PendingMention
from ..utils.time_utils import now_timestamp


class MentionCache:
    """get/set/delete/has over the 'messages' namespace"""

    NAMESPACE = 'messages'

    def __init__(self, store: SQLiteStore):
        self.table = store.table(self.NAMESPACE)
        self.logger = get_logger('MentionCache', component='store')

    async def get(self, message_id: str) -> Optional[PendingMention]:
        data = await self.table.get(message_id)
        if data is None:
            return None
        return PendingMention.from_dict(data)

    async def set(self, message_id: str, record: PendingMention):
        """Store record under message_id, overwriting any existing entry"""
        await self.table.set(message_id, record.to_dict(), created_at=record.captured_at)

    async def delete(self, message_id: str):
        """Remove the entry; deleting an absent id is a no-op"""
        removed = await self.table.delete(message_id)
        if removed:
            self.logger.debug(f"Evicted pending mention {message_id}")

    async def has(self, message_id: str) -> bool:
        return await self.table.has(message_id)

    async def count(self) -> int:
        return await self.table.count()

    async def capture(self, message: Message, now: Optional[float] = None) -> PendingMention:
        """
        Build a PendingMention from a created message and store it.

        Args:
            message: Relevant MESSAGE_CREATE payload (must carry an author)
            now: Capture time, defaults to the current time

        Returns:
            The stored record
        """
        record = PendingMention(
            message_id=message.id,
            channel_id=message.channel_id or '',
            content=message.content,
            author=message.author,
            captured_at=now if now is not None else now_timestamp(),
        )
        await self.set(message.id, record)
        self.logger.info(
            f"Captured mention {message.id} by {message.author.handle} in channel {record.channel_id}"
        )
        return record

    async def sweep(self, max_age_seconds: float, now: Optional[float] = None) -> int:
        """
        Evict pending mentions older than max_age_seconds.

        Returns:
            Number of evicted entries
        """
        reference = now if now is not None else now_timestamp()
        return await self.table.purge_older_than(reference - max_age_seconds)
