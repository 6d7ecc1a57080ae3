"""
Anti-Ghost-Ping
Watches the local Discord client for mentions that get edited away or deleted.
"""

from .watcher import GhostPingWatcher
from .config import Config
from .exceptions import (
    AntiGhostError,
    ConfigurationError,
    StorageError,
    TransportError,
    RPCConnectionError,
    RPCError,
    AuthenticationError,
)
from .models import Author, Channel, LoginResult, Message, PendingMention, Session

__version__ = "1.0.0"

__all__ = [
    "GhostPingWatcher",
    "Config",
    "AntiGhostError",
    "ConfigurationError",
    "StorageError",
    "TransportError",
    "RPCConnectionError",
    "RPCError",
    "AuthenticationError",
    "Author",
    "Channel",
    "LoginResult",
    "Message",
    "PendingMention",
    "Session",
]
