"""
Shared pytest fixtures for anti-ghost-ping tests.
Provides common test infrastructure for all test suites.
"""

import asyncio
import io
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

# Keep log files out of the real home directory; must happen before the
# logging manager is first used
os.environ['ANTIGHOST_HOME'] = tempfile.mkdtemp(prefix='antighost_test_home_')

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import pytest_asyncio
from rich.console import Console

from antighost.config import Config
from antighost.db import SQLiteStore
from antighost.models import Channel, LoginResult
from antighost.reporting import ConsoleDisplay
from antighost.watcher import GhostPingWatcher


SELF_ID = "100"
SELF_NAME = "me"
SELF_DISCRIMINATOR = "0001"
OTHER_ID = "200"


# ============================================================================
# Payload builders
# ============================================================================

def make_message_payload(message_id: str = "m1",
                         content: str = "",
                         author_id: Optional[str] = OTHER_ID,
                         mentions: Optional[List[str]] = None,
                         mention_everyone: bool = False,
                         channel_id: str = "c1",
                         author_color: Optional[str] = "#ff0000",
                         include_mentions: bool = True) -> Dict[str, Any]:
    """Build the ``data`` object of a MESSAGE_* dispatch"""
    message: Dict[str, Any] = {
        'id': message_id,
        'content': content,
        'mention_everyone': mention_everyone,
        'author_color': author_color,
    }
    if author_id is not None:
        message['author'] = {
            'id': author_id,
            'username': f"user{author_id}",
            'discriminator': '4321',
        }
    if include_mentions:
        message['mentions'] = [
            {'id': mention_id, 'username': f"user{mention_id}"} for mention_id in (mentions or [])
        ]
    return {'channel_id': channel_id, 'message': message}


def make_delete_payload(message_id: str = "m1", channel_id: str = "c1") -> Dict[str, Any]:
    return {'channel_id': channel_id, 'message': {'id': message_id}}


# ============================================================================
# Fakes
# ============================================================================

class FakeTransport:
    """In-memory stand-in for the RPC client"""

    def __init__(self,
                 guilds: Optional[Dict[str, List[Channel]]] = None,
                 user: Optional[LoginResult] = None):
        self.guilds = guilds if guilds is not None else {}
        self.user = user or LoginResult(
            user_id=SELF_ID,
            username=SELF_NAME,
            discriminator=SELF_DISCRIMINATOR,
            access_token="fresh-token",
            expires_at=4102444800.0,  # 2100-01-01
        )
        self.login_calls: List[Dict[str, Any]] = []
        self.subscriptions: List[tuple] = []
        self.handlers: Dict[str, Any] = {}
        self.dispatcher = None
        self.closed = False
        self.ended = asyncio.Event()

    async def login(self, credentials: Dict[str, Any]) -> LoginResult:
        self.login_calls.append(credentials)
        return self.user

    async def list_guilds(self) -> List[str]:
        return list(self.guilds)

    async def list_channels(self, guild_id: str) -> List[Channel]:
        return list(self.guilds[guild_id])

    async def subscribe(self, event: str, channel_id: str):
        self.subscriptions.append((event, channel_id))
        return {'evt': event}

    def on(self, event: str, handler):
        self.handlers[event] = handler
        if self.dispatcher is not None:
            self.dispatcher.register(event, handler)

    def drop(self):
        """Simulate Discord closing the connection"""
        self.ended.set()

    async def wait_closed(self):
        await self.ended.wait()

    async def close(self):
        self.closed = True
        self.ended.set()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest_asyncio.fixture
async def store(tmp_dir):
    """Provide a clean, initialized SQLiteStore for each test."""
    sqlite_store = SQLiteStore(str(tmp_dir / "test.sqlite"))
    await sqlite_store.initialize()
    yield sqlite_store
    await sqlite_store.close()


@pytest.fixture
def config(tmp_dir):
    return Config(
        client_id="123",
        client_secret="secret",
        db_path=str(tmp_dir / "watcher.sqlite"),
    )


@pytest.fixture
def self_user():
    return LoginResult(user_id=SELF_ID, username=SELF_NAME, discriminator=SELF_DISCRIMINATOR)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def display(output):
    return ConsoleDisplay(Console(file=output, force_terminal=False, width=200, highlight=False))


@pytest.fixture
def channels():
    return {
        "g1": [
            Channel(id="c1", name="general", type=0),
            Channel(id="c-voice", name="voice", type=2),
            Channel(id="c-category", name="category", type=4),
        ],
        "g2": [
            Channel(id="c2", name="announcements", type=5),
            Channel(id="c-stage", name="stage", type=13),
        ],
    }


@pytest.fixture
def transport(channels):
    return FakeTransport(guilds=channels)


@pytest_asyncio.fixture
async def watcher(config, transport, display):
    """A watcher that has logged in and registered its channels."""
    instance = GhostPingWatcher(config, transport=transport, display=display)
    await instance.initialize()
    await instance.login()
    await instance.populate_channels()
    yield instance
    await instance.close()
