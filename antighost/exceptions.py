"""
Exception classes for Anti-Ghost-Ping.
"""

from typing import Optional


class AntiGhostError(Exception):
    """Base exception for all Anti-Ghost-Ping errors."""
    pass


class ConfigurationError(AntiGhostError):
    """Raised when the configuration is missing or incomplete."""
    pass


class StorageError(AntiGhostError):
    """Raised when storage operations fail."""
    pass


class TransportError(AntiGhostError):
    """Base class for failures of the local RPC transport."""
    pass


class RPCConnectionError(TransportError):
    """Raised when no Discord IPC socket can be reached or the pipe closes."""
    pass


class RPCError(TransportError):
    """Raised when Discord answers a command with an ERROR event."""

    def __init__(self, code: Optional[int], message: str):
        super().__init__(f"[{code}] {message}" if code is not None else message)
        self.code = code
        self.message = message


class AuthenticationError(TransportError):
    """Raised when the OAuth2 code exchange or authentication fails."""
    pass
