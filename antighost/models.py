"""
Data models for Anti-Ghost-Ping.
"""

from dataclasses import dataclass, asdict, field
from typing import Dict, Optional, Any, List
from enum import Enum


class ChannelType(int, Enum):
    """Discord channel kinds that can carry messages worth watching"""
    GUILD_TEXT = 0
    GUILD_VOICE = 2
    GUILD_ANNOUNCEMENT = 5
    ANNOUNCEMENT_THREAD = 10
    PUBLIC_THREAD = 11
    PRIVATE_THREAD = 12
    GUILD_FORUM = 15


class MessageEvent(str, Enum):
    """RPC events the watcher subscribes to for every channel"""
    CREATE = "MESSAGE_CREATE"
    UPDATE = "MESSAGE_UPDATE"
    DELETE = "MESSAGE_DELETE"


@dataclass
class Session:
    """
    Persisted OAuth2 session.

    Attributes:
        access_token: Bearer token accepted by the RPC AUTHENTICATE command
        expires_at: Unix timestamp after which the token must not be reused
    """
    access_token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return self.expires_at > now

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(access_token=data['access_token'], expires_at=float(data['expires_at']))


@dataclass
class Channel:
    """Channel metadata as listed by GET_CHANNELS"""
    id: str
    name: str
    type: int

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Channel":
        return cls(id=str(data['id']), name=data.get('name') or '', type=int(data.get('type', -1)))


@dataclass
class Author:
    """
    Message author as captured at mention time.

    Attributes:
        id: User snowflake
        username: Account name
        discriminator: Legacy four digit tag, "0" for migrated accounts
        color: Role colour of the author in the channel ("#rrggbb"), if any
    """
    id: str
    username: str
    discriminator: Optional[str] = None
    color: Optional[str] = None

    @property
    def handle(self) -> str:
        """username#discriminator, or the bare username for new-style accounts"""
        if self.discriminator and self.discriminator != '0':
            return f"{self.username}#{self.discriminator}"
        return self.username

    @classmethod
    def from_payload(cls, data: Dict[str, Any], color: Optional[str] = None) -> "Author":
        return cls(
            id=str(data['id']),
            username=data.get('username') or '',
            discriminator=data.get('discriminator'),
            color=color,
        )


@dataclass
class Message:
    """
    View of a message carried by a MESSAGE_* dispatch.

    Update payloads can be partial; a missing mention list is treated as empty
    and a missing author leaves ``author`` as None.
    """
    id: str
    channel_id: Optional[str] = None
    content: str = ''
    author: Optional[Author] = None
    mention_ids: List[str] = field(default_factory=list)
    mention_everyone: bool = False
    author_color: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Message":
        """
        Build a Message from the ``data`` object of a MESSAGE_* dispatch.

        Args:
            data: Dispatch data with ``channel_id`` and ``message`` keys

        Returns:
            Parsed Message
        """
        message = data['message']
        color = message.get('author_color')
        author = message.get('author')

        mention_ids = []
        for mention in message.get('mentions') or []:
            mention_ids.append(str(mention['id']) if isinstance(mention, dict) else str(mention))

        return cls(
            id=str(message['id']),
            channel_id=str(data['channel_id']) if data.get('channel_id') is not None else None,
            content=message.get('content') or '',
            author=Author.from_payload(author, color) if author else None,
            mention_ids=mention_ids,
            mention_everyone=bool(message.get('mention_everyone')),
            author_color=color,
        )


@dataclass
class PendingMention:
    """
    A mention of the current user waiting for a possible edit or delete.

    Attributes:
        message_id: Id of the mentioning message (cache key)
        channel_id: Channel the message was posted in
        content: Original message content
        author: Author of the message
        captured_at: Unix timestamp of capture, used for TTL eviction
    """
    message_id: str
    channel_id: str
    content: str
    author: Author
    captured_at: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingMention":
        return cls(
            message_id=data['message_id'],
            channel_id=data['channel_id'],
            content=data['content'],
            author=Author(**data['author']),
            captured_at=float(data['captured_at']),
        )


@dataclass
class LoginResult:
    """Identity of the logged in user and the token the login produced"""
    user_id: str
    username: str
    discriminator: Optional[str] = None
    access_token: Optional[str] = None
    expires_at: Optional[float] = None

    @property
    def handle(self) -> str:
        return Author(self.user_id, self.username, self.discriminator).handle
