"""
Discord local RPC transport
IPC framing, the command/event client and the OAuth2 code exchange.
"""

from .client import RPCClient, DEFAULT_SCOPES
from .ipc import Opcode, encode_frame, read_frame, candidate_paths, open_ipc
from .oauth import exchange_code, TOKEN_URL

__all__ = [
    'RPCClient',
    'DEFAULT_SCOPES',
    'Opcode',
    'encode_frame',
    'read_frame',
    'candidate_paths',
    'open_ipc',
    'exchange_code',
    'TOKEN_URL',
]
