#!/usr/bin/env python3
"""
Channel Registry
Holds the text-like channels of every guild the user is in. Filled once at
startup, read-only afterwards; used to subscribe to message events and to
resolve channel names for reports.
"""

import asyncio
from typing import Dict, Iterable, Iterator, List, Optional

from ..log_manager import get_logger
from ..models import Channel, ChannelType


ALLOWED_CHANNEL_TYPES = frozenset(int(t) for t in ChannelType)


def is_text_like(channel_type: int) -> bool:
    """True for channel kinds on the fixed allow-list"""
    return channel_type in ALLOWED_CHANNEL_TYPES


class ChannelRegistry:
    """
    In-memory channel list with an id index.

    The transport only needs ``list_channels(guild_id)``.
    """

    def __init__(self, transport):
        """
        Args:
            transport: Object exposing ``async list_channels(guild_id) -> List[Channel]``
        """
        self.transport = transport
        self.logger = get_logger('ChannelRegistry')
        self._channels: List[Channel] = []
        self._by_id: Dict[str, Channel] = {}

    async def populate(self, guild_ids: Iterable[str]) -> List[Channel]:
        """
        List the channels of every guild and keep the text-like ones.

        Listings run concurrently; results are kept in guild order. A failed
        listing propagates, since partial coverage would silently miss pings.

        Args:
            guild_ids: Guilds to list

        Returns:
            The aggregated channel list (empty for no guilds)
        """
        guild_ids = list(guild_ids)
        listings = await asyncio.gather(
            *(self.transport.list_channels(guild_id) for guild_id in guild_ids)
        )

        channels = []
        for guild_id, listing in zip(guild_ids, listings):
            kept = [channel for channel in listing if is_text_like(channel.type)]
            self.logger.debug(f"Guild {guild_id}: kept {len(kept)} of {len(listing)} channels")
            channels.extend(kept)

        self._channels = channels
        self._by_id = {channel.id: channel for channel in channels}
        self.logger.info(f"Registered {len(channels)} channels from {len(guild_ids)} guilds")
        return list(channels)

    def find_by_id(self, channel_id: Optional[str]) -> Optional[Channel]:
        """Look up a channel; None for unknown or filtered-out channels"""
        if channel_id is None:
            return None
        return self._by_id.get(channel_id)

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[Channel]:
        return iter(self._channels)
