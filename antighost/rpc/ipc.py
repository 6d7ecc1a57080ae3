#!/usr/bin/env python3
"""
Discord IPC framing.

Every frame is an 8-byte little-endian header (opcode, payload length)
followed by a UTF-8 JSON payload. The desktop client listens on a Unix
domain socket named discord-ipc-{0..9} in the runtime/temp directory.
"""

import asyncio
import json
import os
import struct
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import RPCConnectionError


HEADER = struct.Struct('<II')
SOCKET_COUNT = 10


class Opcode(IntEnum):
    HANDSHAKE = 0
    FRAME = 1
    CLOSE = 2
    PING = 3
    PONG = 4


def encode_frame(opcode: int, payload: Dict[str, Any]) -> bytes:
    body = json.dumps(payload, separators=(',', ':')).encode('utf-8')
    return HEADER.pack(int(opcode), len(body)) + body


def decode_header(header: bytes) -> Tuple[int, int]:
    return HEADER.unpack(header)


async def read_frame(reader: asyncio.StreamReader) -> Tuple[int, Dict[str, Any]]:
    """
    Read one frame.

    Raises:
        asyncio.IncompleteReadError: The pipe closed mid-frame or before one
    """
    opcode, length = decode_header(await reader.readexactly(HEADER.size))
    body = await reader.readexactly(length) if length else b''
    return opcode, json.loads(body.decode('utf-8')) if body else {}


def candidate_paths(environ: Optional[Dict[str, str]] = None) -> List[Path]:
    """
    Socket paths to try, in order.

    Flatpak and Snap installs expose the socket under the same runtime
    directory with an app sub-directory.
    """
    environ = os.environ if environ is None else environ
    base = None
    for var in ('XDG_RUNTIME_DIR', 'TMPDIR', 'TMP', 'TEMP'):
        if environ.get(var):
            base = Path(environ[var])
            break
    if base is None:
        base = Path('/tmp')

    prefixes = [base, base / 'app' / 'com.discordapp.Discord', base / 'snap.discord']
    return [prefix / f'discord-ipc-{i}' for i in range(SOCKET_COUNT) for prefix in prefixes]


async def open_ipc(paths: Optional[List[Path]] = None) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """
    Connect to the first reachable Discord IPC socket.

    Raises:
        RPCConnectionError: No socket accepted the connection
    """
    if os.name == 'nt':
        raise RPCConnectionError("Discord IPC over named pipes is not supported on Windows")

    for path in paths if paths is not None else candidate_paths():
        if not path.exists():
            continue
        try:
            return await asyncio.open_unix_connection(str(path))
        except OSError:
            continue
    raise RPCConnectionError("Could not connect to Discord; is the desktop client running?")
