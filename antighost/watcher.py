"""
Ghost ping watcher - the session context that ties all components together.
This is the main entry point for watching a Discord client.
"""

import asyncio
from typing import Any, Dict, Optional

from .channels import ChannelRegistry
from .config import Config
from .db import SQLiteStore
from .events import EventDispatcher
from .exceptions import RPCConnectionError
from .log_manager import get_logger
from .mentions import MentionCache, MentionDetector
from .models import LoginResult, Message, MessageEvent, PendingMention, Session
from .reporting import ConsoleDisplay, DiffReporter, GhostPingReport
from .rpc import RPCClient
from .sessions import SessionStore


# Synthetic dispatcher event that runs the retention sweep in the event queue
SWEEP_EVENT = 'ANTIGHOST_SWEEP'


class GhostPingWatcher:
    """
    Owns every component of one watching session.

    Startup order:
    - open the store and sweep stale pending mentions
    - log in, reusing the stored token while it is valid
    - populate the channel registry (all listings must finish)
    - subscribe to MESSAGE_CREATE/UPDATE/DELETE for every registered channel

    Events are then handled one at a time by the dispatcher.
    """

    def __init__(self,
                 config: Config,
                 transport=None,
                 store: Optional[SQLiteStore] = None,
                 display: Optional[ConsoleDisplay] = None,
                 dispatcher: Optional[EventDispatcher] = None):
        """
        Args:
            config: Loaded configuration
            transport: RPC transport (defaults to an RPCClient on the dispatcher)
            store: Key-value store (defaults to SQLiteStore at config.db_path)
            display: Console output
            dispatcher: Sequential event dispatcher
        """
        self.config = config
        self.logger = get_logger('GhostPingWatcher')

        self.store = store or SQLiteStore(config.db_path)
        self.sessions = SessionStore(self.store)
        self.mentions = MentionCache(self.store)

        self.dispatcher = dispatcher or EventDispatcher()
        self.transport = transport or RPCClient(self.dispatcher)
        self.channels = ChannelRegistry(self.transport)
        self.detector = MentionDetector()
        self.display = display or ConsoleDisplay()

        self.user: Optional[LoginResult] = None
        self.reporter: Optional[DiffReporter] = None
        self._sweep_task: Optional[asyncio.Task] = None

    # ============================================================================
    # Lifecycle
    # ============================================================================

    async def initialize(self):
        await self.store.initialize()
        await self.sweep()

    async def login(self) -> LoginResult:
        """
        Log in through the transport and persist the token it reports.

        Returns:
            The logged in user
        """
        token = await self.sessions.reusable_token()
        user = await self.transport.login(self.config.credentials(token))

        if user.access_token and user.expires_at:
            await self.sessions.save(Session(access_token=user.access_token, expires_at=user.expires_at))

        self.user = user
        self.reporter = DiffReporter(user)
        self.display.logged_in(user)
        self.logger.info(f"Logged in as {user.handle} ({user.user_id})")
        return user

    async def populate_channels(self):
        with self.display.fetching_channels():
            guild_ids = await self.transport.list_guilds()
            await self.channels.populate(guild_ids)

    def register_handlers(self):
        self.transport.on(MessageEvent.CREATE.value, self.handle_create)
        self.transport.on(MessageEvent.UPDATE.value, self.handle_update)
        self.transport.on(MessageEvent.DELETE.value, self.handle_delete)
        self.dispatcher.register(SWEEP_EVENT, self.handle_sweep)

    async def subscribe_all(self):
        """Subscribe to every message event of every registered channel"""
        with self.display.subscribing(len(self.channels)) as tick:
            for channel in self.channels:
                for event in MessageEvent:
                    await self.transport.subscribe(event.value, channel.id)
                tick()
        self.logger.info(f"Subscribed to {len(self.channels)} channels")

    async def start(self):
        """Run the full startup sequence and begin handling events"""
        await self.initialize()
        await self.login()
        await self.populate_channels()
        self.register_handlers()
        self.dispatcher.start()
        await self.subscribe_all()
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def run_forever(self):
        """
        Start, then block until the dispatcher stops or the transport ends.

        Raises:
            RPCConnectionError: Discord closed the connection
        """
        await self.start()
        dispatching = self.dispatcher.start()
        wait_closed = getattr(self.transport, 'wait_closed', None)
        if wait_closed is None:
            await dispatching
            return

        transport_end = asyncio.ensure_future(wait_closed())
        try:
            done, _ = await asyncio.wait(
                {dispatching, transport_end}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if not transport_end.done():
                transport_end.cancel()
        if transport_end in done:
            self.logger.error("Transport closed while watching")
            raise RPCConnectionError("Discord closed the connection, no more events can arrive")

    async def close(self):
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        await self.dispatcher.stop()
        close = getattr(self.transport, 'close', None)
        if close is not None:
            await close()
        await self.store.close()

    # ============================================================================
    # Retention
    # ============================================================================

    async def sweep(self) -> int:
        """Evict pending mentions older than the configured TTL"""
        evicted = await self.mentions.sweep(self.config.pending_ttl_seconds)
        if evicted:
            self.logger.info(f"Evicted {evicted} stale pending mentions")
        return evicted

    async def handle_sweep(self, data: Dict[str, Any]) -> int:
        return await self.sweep()

    async def _sweep_loop(self):
        """Queue a sweep every interval so it never runs beside a handler"""
        while True:
            try:
                await asyncio.sleep(self.config.sweep_interval_seconds)
            except asyncio.CancelledError:
                break
            self.dispatcher.put(SWEEP_EVENT, {})

    # ============================================================================
    # Event Handlers
    # ============================================================================

    async def handle_create(self, data: Dict[str, Any]) -> Optional[PendingMention]:
        """Capture the message if it mentions the current user"""
        message = Message.from_payload(data)
        if not self.detector.is_relevant(message, self.user.user_id):
            return None
        return await self.mentions.capture(message)

    async def handle_update(self, data: Dict[str, Any]) -> Optional[GhostPingReport]:
        """
        Report an edit that removed the mention.

        An edit that still mentions the user leaves the pending record in
        place, so a later edit or delete of the same message is still caught.
        """
        message = Message.from_payload(data)
        before = await self.mentions.get(message.id)
        if before is None:
            return None

        if self.detector.is_suppressed(message, self.user.user_id):
            self.logger.debug(f"Edit of {message.id} still mentions the user, kept pending")
            return None

        channel = self.channels.find_by_id(before.channel_id)
        if channel is None:
            self.logger.warning(f"Channel {before.channel_id} of message {message.id} is not registered")

        await self.mentions.delete(message.id)
        return self._emit(self.reporter.report(before, message, channel))

    async def handle_delete(self, data: Dict[str, Any]) -> Optional[GhostPingReport]:
        """Report the deletion of a captured mention"""
        message = Message.from_payload(data)
        before = await self.mentions.get(message.id)
        if before is None:
            return None

        channel = self.channels.find_by_id(message.channel_id or before.channel_id)
        if channel is None:
            self.logger.warning(f"Channel {message.channel_id} of message {message.id} is not registered")

        await self.mentions.delete(message.id)
        return self._emit(self.reporter.report(before, None, channel))

    def _emit(self, report: GhostPingReport) -> GhostPingReport:
        self.logger.info(f"Ghost ping ({report.kind}): {report.to_text()}")
        self.display.report(report)
        return report
