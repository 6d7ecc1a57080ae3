"""
Test suite for the pending mention cache.
Durable get/set/delete/has plus capture and TTL eviction.
"""

import pytest

from antighost.mentions import MentionCache
from antighost.models import Author, Message, PendingMention

from conftest import SELF_ID, make_message_payload


def record(message_id: str = "m1", content: str = "hello", captured_at: float = 1000.0) -> PendingMention:
    return PendingMention(
        message_id=message_id,
        channel_id="c1",
        content=content,
        author=Author(id="200", username="someone", discriminator="4321", color="#00ff00"),
        captured_at=captured_at,
    )


@pytest.fixture
def cache(store):
    return MentionCache(store)


class TestMentionCacheBasics:
    """Key-value contract."""

    @pytest.mark.asyncio
    async def test_set_then_get_returns_equal_record(self, cache):
        rec = record()
        await cache.set("m1", rec)
        assert await cache.get("m1") == rec

    @pytest.mark.asyncio
    async def test_delete_then_has_is_false(self, cache):
        await cache.set("m1", record())
        assert await cache.has("m1") is True
        await cache.delete("m1")
        assert await cache.has("m1") is False
        assert await cache.get("m1") is None

    @pytest.mark.asyncio
    async def test_delete_absent_is_noop(self, cache):
        await cache.set("m2", record("m2"))
        await cache.delete("missing")
        await cache.delete("missing")
        assert await cache.has("m2") is True
        assert await cache.count() == 1

    @pytest.mark.asyncio
    async def test_set_overwrites(self, cache):
        await cache.set("m1", record(content="first"))
        await cache.set("m1", record(content="second"))
        assert (await cache.get("m1")).content == "second"
        assert await cache.count() == 1

    @pytest.mark.asyncio
    async def test_survives_reopen(self, store, cache):
        await cache.set("m1", record())
        reopened = MentionCache(type(store)(store.db_path))
        assert await reopened.get("m1") == record()


class TestCapture:

    @pytest.mark.asyncio
    async def test_capture_stores_original_content_and_author(self, cache):
        msg = Message.from_payload(make_message_payload(
            message_id="m9", content=f"hello <@{SELF_ID}>", mentions=[SELF_ID], channel_id="c7"
        ))
        captured = await cache.capture(msg, now=5.0)

        stored = await cache.get("m9")
        assert stored == captured
        assert stored.content == f"hello <@{SELF_ID}>"
        assert stored.channel_id == "c7"
        assert stored.author.id == "200"
        assert stored.author.color == "#ff0000"
        assert stored.captured_at == 5.0


class TestSweep:
    """Eviction of mentions that never saw an edit or delete."""

    @pytest.mark.asyncio
    async def test_sweep_evicts_only_old_entries(self, cache):
        await cache.set("old", record("old", captured_at=1000.0))
        await cache.set("new", record("new", captured_at=9000.0))

        evicted = await cache.sweep(max_age_seconds=3600, now=10000.0)

        assert evicted == 1
        assert await cache.has("old") is False
        assert await cache.has("new") is True

    @pytest.mark.asyncio
    async def test_sweep_on_empty_cache(self, cache):
        assert await cache.sweep(max_age_seconds=60, now=10000.0) == 0
