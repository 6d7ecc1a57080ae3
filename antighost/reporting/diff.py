#!/usr/bin/env python3
"""
Diff Reporter
Renders a captured mention against its update (or its deletion).

Format pattern:
[channel name] (channel id) author (author id): original ===> updated
"""

from dataclasses import dataclass
from typing import Optional

from ..mentions.detector import mention_token
from ..models import Author, Channel, LoginResult, Message, PendingMention


CHANGE_MARKER = "===>"
UNKNOWN_CHANNEL = "unknown channel"


@dataclass
class GhostPingReport:
    """
    A rendered ghost ping.

    Attributes:
        kind: 'update' or 'delete'
        channel_id: Channel of the original message
        channel_name: Display name, None when the channel is not registered
        author: Author of the original message
        original_content: Original content, self-mention rewritten
        new_content: Updated content for 'update' reports, self-mention rewritten
        new_color: Author colour carried by the update payload
    """
    kind: str
    channel_id: str
    channel_name: Optional[str]
    author: Author
    original_content: str
    new_content: Optional[str] = None
    new_color: Optional[str] = None

    @property
    def header(self) -> str:
        name = self.channel_name if self.channel_name is not None else UNKNOWN_CHANNEL
        return f"[{name}] ({self.channel_id}) {self.author.handle} ({self.author.id}):"

    def to_text(self) -> str:
        text = f"{self.header} {self.original_content}"
        if self.kind == 'update':
            text += f" {CHANGE_MARKER} {self.new_content}"
        return text

    def __str__(self) -> str:
        return self.to_text()


class DiffReporter:
    """Builds GhostPingReports for the logged in user"""

    def __init__(self, user: LoginResult):
        self.user = user
        self._token = mention_token(user.user_id)
        self._readable = f"@{user.handle}"

    def humanize(self, content: str) -> str:
        """Replace every exact self-mention token with @handle"""
        return content.replace(self._token, self._readable)

    def report(self, before: PendingMention, after: Optional[Message],
               channel: Optional[Channel]) -> GhostPingReport:
        """
        Describe the change of a captured mention.

        Args:
            before: The cached original
            after: The update payload, None for a delete
            channel: Registered channel of the original, None if unknown

        Returns:
            The report; never raises for an unknown channel
        """
        return GhostPingReport(
            kind='delete' if after is None else 'update',
            channel_id=channel.id if channel is not None else before.channel_id,
            channel_name=channel.name if channel is not None else None,
            author=before.author,
            original_content=self.humanize(before.content),
            new_content=self.humanize(after.content) if after is not None else None,
            new_color=after.author_color if after is not None else None,
        )
