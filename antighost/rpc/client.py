#!/usr/bin/env python3
"""
Discord local RPC client.

Speaks the IPC protocol of the desktop client: handshake, commands
correlated by nonce, and DISPATCH events forwarded to an EventDispatcher.
Several commands may be in flight at once (channel listings at startup);
each waits on its own future.
"""

import asyncio
import uuid
from typing import Any, Dict, List, Optional

from ..events import EventDispatcher
from ..exceptions import AuthenticationError, RPCConnectionError, RPCError
from ..log_manager import get_logger
from ..models import Channel, LoginResult
from ..config import DEFAULT_SCOPES
from ..utils.time_utils import now_timestamp, to_timestamp
from .ipc import Opcode, encode_frame, open_ipc, read_frame
from .oauth import exchange_code


RPC_VERSION = 1


class RPCClient:
    """
    Async client for the Discord IPC transport.

    Usage:
        client = RPCClient(dispatcher)
        user = await client.login(credentials)
        guilds = await client.list_guilds()
        await client.subscribe("MESSAGE_CREATE", channel_id)
    """

    def __init__(self, dispatcher: Optional[EventDispatcher] = None, open_connection=open_ipc):
        """
        Args:
            dispatcher: Receives DISPATCH events other than READY/ERROR
            open_connection: Coroutine returning (reader, writer); replaceable in tests
        """
        self.dispatcher = dispatcher or EventDispatcher()
        self.logger = get_logger('RPCClient', component='transport')
        self._open_connection = open_connection
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._read_task: Optional[asyncio.Task] = None
        self._pending: Dict[str, asyncio.Future] = {}
        self._ready: Optional[asyncio.Future] = None
        self.user: Optional[Dict[str, Any]] = None

    @property
    def connected(self) -> bool:
        return self._writer is not None and self._read_task is not None and not self._read_task.done()

    # ============================================================================
    # Connection Lifecycle
    # ============================================================================

    async def connect(self, client_id: str) -> Dict[str, Any]:
        """
        Open the socket, send the handshake and wait for READY.

        Returns:
            READY data (contains the connected ``user``)
        """
        self._reader, self._writer = await self._open_connection()
        loop = asyncio.get_running_loop()
        self._ready = loop.create_future()
        self._read_task = asyncio.create_task(self._read_loop())

        await self._send(Opcode.HANDSHAKE, {'v': RPC_VERSION, 'client_id': str(client_id)})
        ready = await self._ready
        self.user = ready.get('user')
        self.logger.info("Handshake complete")
        return ready

    async def close(self):
        """Send CLOSE and tear the connection down"""
        if self._writer is not None:
            try:
                await self._send(Opcode.CLOSE, {})
            except (ConnectionError, RPCConnectionError):
                pass
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except ConnectionError:
                pass
        if self._read_task is not None:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
        self._fail_pending(RPCConnectionError("Connection closed"))
        self._reader = self._writer = self._read_task = None

    async def wait_closed(self):
        """Return once the read loop has ended (pipe closed or CLOSE received)"""
        if self._read_task is None:
            return
        await asyncio.shield(self._read_task)

    async def _send(self, opcode: int, payload: Dict[str, Any]):
        if self._writer is None:
            raise RPCConnectionError("Not connected")
        self._writer.write(encode_frame(opcode, payload))
        await self._writer.drain()

    async def _read_loop(self):
        try:
            while True:
                opcode, payload = await read_frame(self._reader)
                if opcode == Opcode.FRAME:
                    self._handle_frame(payload)
                elif opcode == Opcode.PING:
                    await self._send(Opcode.PONG, payload)
                elif opcode == Opcode.CLOSE:
                    self.logger.warning(f"Discord closed the connection: {payload}")
                    self._fail_pending(RPCError(payload.get('code'), payload.get('message', 'Connection closed')))
                    return
        except asyncio.IncompleteReadError:
            self.logger.warning("IPC pipe closed")
            self._fail_pending(RPCConnectionError("Discord closed the IPC pipe"))
        except ConnectionError as e:
            self.logger.error(f"IPC connection error: {e}")
            self._fail_pending(RPCConnectionError(str(e)))
        except ValueError as e:
            self.logger.error(f"Malformed IPC frame: {e}")
            self._fail_pending(RPCConnectionError(f"Malformed IPC frame: {e}"))

    def _handle_frame(self, payload: Dict[str, Any]):
        nonce = payload.get('nonce')
        evt = payload.get('evt')
        data = payload.get('data') or {}

        if nonce and nonce in self._pending:
            future = self._pending.pop(nonce)
            if future.done():
                return
            if evt == 'ERROR':
                future.set_exception(RPCError(data.get('code'), data.get('message', 'Unknown error')))
            else:
                future.set_result(data)
            return

        if payload.get('cmd') != 'DISPATCH':
            self.logger.debug(f"Unmatched frame {payload.get('cmd')} ({nonce})")
            return

        if evt == 'READY':
            if self._ready is not None and not self._ready.done():
                self._ready.set_result(data)
        elif evt == 'ERROR':
            error = RPCError(data.get('code'), data.get('message', 'Unknown error'))
            if self._ready is not None and not self._ready.done():
                self._ready.set_exception(error)
            else:
                self.logger.error(f"RPC error event: {error}")
        else:
            self.dispatcher.put(evt, data)

    def _fail_pending(self, error: Exception):
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
        if self._ready is not None and not self._ready.done():
            self._ready.set_exception(error)

    # ============================================================================
    # Commands
    # ============================================================================

    async def command(self, cmd: str, args: Optional[Dict[str, Any]] = None,
                      evt: Optional[str] = None) -> Dict[str, Any]:
        """
        Send a command and wait for the response with the same nonce.

        Raises:
            RPCError: Discord answered with an ERROR event
            RPCConnectionError: The connection dropped before the answer
        """
        if not self.connected:
            raise RPCConnectionError("Not connected")

        nonce = str(uuid.uuid4())
        future = asyncio.get_running_loop().create_future()
        self._pending[nonce] = future

        payload: Dict[str, Any] = {'cmd': cmd, 'args': args or {}, 'nonce': nonce}
        if evt is not None:
            payload['evt'] = evt
        try:
            await self._send(Opcode.FRAME, payload)
        except ConnectionError as e:
            self._pending.pop(nonce, None)
            raise RPCConnectionError(str(e)) from e
        except Exception:
            self._pending.pop(nonce, None)
            raise
        return await future

    async def authorize(self, client_id: str, scopes: List[str]) -> str:
        """Ask the user to approve the application; returns the OAuth2 code"""
        data = await self.command('AUTHORIZE', {'client_id': str(client_id), 'scopes': scopes})
        return data['code']

    async def authenticate(self, access_token: str) -> Dict[str, Any]:
        return await self.command('AUTHENTICATE', {'access_token': access_token})

    async def list_guilds(self) -> List[str]:
        data = await self.command('GET_GUILDS')
        return [str(guild['id']) for guild in data.get('guilds', [])]

    async def list_channels(self, guild_id: str) -> List[Channel]:
        data = await self.command('GET_CHANNELS', {'guild_id': str(guild_id)})
        return [Channel.from_payload(channel) for channel in data.get('channels', [])]

    async def subscribe(self, event: str, channel_id: str) -> Dict[str, Any]:
        return await self.command('SUBSCRIBE', {'channel_id': str(channel_id)}, evt=event)

    def on(self, event: str, handler):
        """Register the handler that receives the ``data`` of an event"""
        self.dispatcher.register(event, handler)

    # ============================================================================
    # Login
    # ============================================================================

    async def login(self, credentials: Dict[str, Any]) -> LoginResult:
        """
        Connect and authenticate.

        A stored access token is tried first; if Discord rejects it the full
        authorize + code exchange flow runs instead.

        Args:
            credentials: client_id, client_secret, redirect_uri, scopes and an
                optional access_token to reuse

        Returns:
            The logged in user and the token Discord reported
        """
        client_id = credentials['client_id']
        if not self.connected:
            await self.connect(client_id)

        auth = None
        access_token = credentials.get('access_token')
        if access_token:
            try:
                auth = await self.authenticate(access_token)
            except RPCError as e:
                self.logger.warning(f"Stored token rejected ({e}), authorizing again")
                access_token = None

        if auth is None:
            code = await self.authorize(client_id, credentials.get('scopes') or DEFAULT_SCOPES)
            token = await exchange_code(
                client_id,
                credentials['client_secret'],
                code,
                credentials['redirect_uri'],
            )
            access_token = token['access_token']
            try:
                auth = await self.authenticate(access_token)
            except RPCError as e:
                raise AuthenticationError(f"Discord rejected the new token: {e}") from e
            if not auth.get('expires') and token.get('expires_in'):
                auth['expires'] = now_timestamp() + float(token['expires_in'])

        user = auth.get('user') or self.user or {}
        if 'id' not in user:
            raise AuthenticationError("AUTHENTICATE returned no user")
        self.user = user

        return LoginResult(
            user_id=str(user['id']),
            username=user.get('username', ''),
            discriminator=user.get('discriminator'),
            access_token=access_token,
            expires_at=to_timestamp(auth.get('expires')),
        )
