"""
End-to-end watcher scenarios: capture, edit, delete and login reuse,
driven through the watcher handlers with an in-memory transport.
"""

import asyncio
import time

import pytest

from antighost.exceptions import RPCConnectionError
from antighost.models import Message, Session
from antighost.watcher import GhostPingWatcher

from conftest import (
    OTHER_ID,
    SELF_ID,
    FakeTransport,
    make_delete_payload,
    make_message_payload,
)


def mention_payload(content="hello <@100>", **kwargs):
    return make_message_payload(content=content, mentions=[SELF_ID], **kwargs)


class TestGhostPingScenarios:

    @pytest.mark.asyncio
    async def test_edit_removing_mention_is_reported(self, watcher, output):
        await watcher.handle_create(mention_payload())
        assert await watcher.mentions.has("m1")

        report = await watcher.handle_update(make_message_payload(content="hello everyone"))

        assert report is not None
        assert report.kind == 'update'
        assert report.to_text() == (
            "[general] (c1) user200#4321 (200): hello @me#0001 ===> hello everyone"
        )
        assert not await watcher.mentions.has("m1")
        assert "===> hello everyone" in output.getvalue()

    @pytest.mark.asyncio
    async def test_edit_keeping_mention_is_not_reported(self, watcher, output):
        await watcher.handle_create(mention_payload())

        report = await watcher.handle_update(mention_payload(content="hello <@100> again"))

        assert report is None
        assert await watcher.mentions.has("m1")
        assert "===>" not in output.getvalue()

    @pytest.mark.asyncio
    async def test_kept_mention_reported_once_on_later_delete(self, watcher, output):
        await watcher.handle_create(mention_payload())
        await watcher.handle_update(mention_payload(content="hello <@100> again"))

        first = await watcher.handle_delete(make_delete_payload())
        second = await watcher.handle_delete(make_delete_payload())

        assert first is not None and first.kind == 'delete'
        assert first.to_text() == "[general] (c1) user200#4321 (200): hello @me#0001"
        assert second is None
        assert output.getvalue().count("hello @me#0001") == 1

    @pytest.mark.asyncio
    async def test_deleted_mention_is_reported(self, watcher):
        await watcher.handle_create(mention_payload())

        report = await watcher.handle_delete(make_delete_payload())

        assert report.kind == 'delete'
        assert report.new_content is None
        assert "===>" not in report.to_text()
        assert not await watcher.mentions.has("m1")

    @pytest.mark.asyncio
    async def test_message_without_mention_is_ignored(self, watcher, output):
        captured = await watcher.handle_create(make_message_payload(content="just chatting"))
        updated = await watcher.handle_update(make_message_payload(content="still chatting"))
        deleted = await watcher.handle_delete(make_delete_payload())

        assert captured is None and updated is None and deleted is None
        assert await watcher.mentions.count() == 0
        assert "user200" not in output.getvalue()

    @pytest.mark.asyncio
    async def test_self_authored_mention_is_not_captured(self, watcher):
        captured = await watcher.handle_create(mention_payload(author_id=SELF_ID))
        assert captured is None
        assert await watcher.mentions.count() == 0

    @pytest.mark.asyncio
    async def test_everyone_mention_is_captured(self, watcher):
        captured = await watcher.handle_create(
            make_message_payload(content="@everyone meeting", mention_everyone=True)
        )
        assert captured is not None
        assert captured.author.id == OTHER_ID

    @pytest.mark.asyncio
    async def test_unregistered_channel_still_reports(self, watcher):
        await watcher.handle_create(mention_payload(channel_id="c-gone"))

        report = await watcher.handle_delete(make_delete_payload(channel_id="c-gone"))

        assert report.channel_name is None
        assert report.to_text().startswith("[unknown channel] (c-gone) ")

    @pytest.mark.asyncio
    async def test_unregistered_channel_still_reports_edit(self, watcher, output):
        await watcher.handle_create(mention_payload(channel_id="c-gone"))

        report = await watcher.handle_update(
            make_message_payload(content="nothing to see", channel_id="c-gone")
        )

        assert report.kind == 'update'
        assert report.channel_name is None
        assert report.to_text() == (
            "[unknown channel] (c-gone) user200#4321 (200): hello @me#0001 ===> nothing to see"
        )
        assert not await watcher.mentions.has("m1")
        assert "[unknown channel] (c-gone)" in output.getvalue()


class TestLoginReuse:

    @pytest.mark.asyncio
    async def test_expired_session_is_not_reused(self, config, display):
        transport = FakeTransport()
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        await watcher.initialize()
        try:
            await watcher.sessions.save(Session(access_token="old-token", expires_at=1.0))
            await watcher.login()

            assert 'access_token' not in transport.login_calls[0]
            stored = await watcher.sessions.load()
            assert stored.access_token == "fresh-token"
        finally:
            await watcher.close()

    @pytest.mark.asyncio
    async def test_valid_session_is_reused(self, config, display):
        transport = FakeTransport()
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        await watcher.initialize()
        try:
            await watcher.sessions.save(Session(access_token="kept-token", expires_at=4102444800.0))
            await watcher.login()

            assert transport.login_calls[0]['access_token'] == "kept-token"
        finally:
            await watcher.close()

    @pytest.mark.asyncio
    async def test_login_announces_user(self, watcher, output):
        assert "Logged on account me#0001 (100)!" in output.getvalue()


class TestStartup:

    @pytest.mark.asyncio
    async def test_start_subscribes_every_text_like_channel(self, config, transport, display, output):
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        try:
            await watcher.start()

            subscribed = {channel_id for _, channel_id in transport.subscriptions}
            assert subscribed == {"c1", "c-voice", "c2"}
            assert len(transport.subscriptions) == 9
            assert set(transport.handlers) == {'MESSAGE_CREATE', 'MESSAGE_UPDATE', 'MESSAGE_DELETE'}
            assert "Successfully subscribed to events!" in output.getvalue()
        finally:
            await watcher.close()
        assert transport.closed

    @pytest.mark.asyncio
    async def test_initialize_sweeps_stale_mentions(self, watcher):
        await watcher.handle_create(mention_payload())
        record = await watcher.mentions.get("m1")
        record.captured_at -= watcher.config.pending_ttl_seconds + 60
        await watcher.mentions.set("m1", record)

        assert await watcher.sweep() == 1
        assert await watcher.mentions.count() == 0

    @pytest.mark.asyncio
    async def test_periodic_sweep_runs_through_dispatcher(self, config, transport, display):
        config.sweep_interval_seconds = 0.05
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        try:
            await watcher.start()
            stale = await watcher.mentions.capture(
                Message.from_payload(mention_payload()),
                now=time.time() - config.pending_ttl_seconds - 60,
            )
            assert await watcher.mentions.has(stale.message_id)

            for _ in range(100):
                if not await watcher.mentions.has(stale.message_id):
                    break
                await asyncio.sleep(0.02)

            assert not await watcher.mentions.has(stale.message_id)
            assert watcher.dispatcher.processed >= 1
            assert watcher.dispatcher.failed == 0
            sweep_task = watcher._sweep_task
        finally:
            await watcher.close()

        assert sweep_task.done()
        assert watcher._sweep_task is None

    @pytest.mark.asyncio
    async def test_fresh_mentions_survive_periodic_sweep(self, config, transport, display):
        config.sweep_interval_seconds = 0.05
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        try:
            await watcher.start()
            await watcher.handle_create(mention_payload())
            await asyncio.sleep(0.2)

            assert watcher.dispatcher.processed >= 1
            assert await watcher.mentions.has("m1")
        finally:
            await watcher.close()

    @pytest.mark.asyncio
    async def test_run_forever_fails_when_transport_ends(self, config, transport, display):
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        try:
            running = asyncio.create_task(watcher.run_forever())
            for _ in range(100):
                if len(transport.subscriptions) == 9:
                    break
                await asyncio.sleep(0.01)
            assert not running.done()

            transport.drop()
            with pytest.raises(RPCConnectionError):
                await asyncio.wait_for(running, timeout=2)
        finally:
            await watcher.close()


class TestSequentialDispatch:

    @pytest.mark.asyncio
    async def test_events_are_handled_in_arrival_order(self, config, transport, display, output):
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        transport.dispatcher = watcher.dispatcher
        try:
            await watcher.start()
            # Created, then deleted right away: the delete must see the capture
            watcher.dispatcher.put('MESSAGE_CREATE', mention_payload())
            watcher.dispatcher.put('MESSAGE_DELETE', make_delete_payload())
            await asyncio.wait_for(watcher.dispatcher.queue.join(), timeout=2)

            assert "[general] (c1) user200#4321 (200): hello @me#0001" in output.getvalue()
            assert await watcher.mentions.count() == 0
        finally:
            await watcher.close()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_dispatch(self, config, transport, display):
        watcher = GhostPingWatcher(config, transport=transport, display=display)
        transport.dispatcher = watcher.dispatcher
        try:
            await watcher.start()
            # Missing 'message' key makes the create handler raise
            watcher.dispatcher.put('MESSAGE_CREATE', {'channel_id': 'c1'})
            watcher.dispatcher.put('MESSAGE_CREATE', mention_payload(message_id="m2"))
            await asyncio.wait_for(watcher.dispatcher.queue.join(), timeout=2)

            assert watcher.dispatcher.failed == 1
            assert await watcher.mentions.has("m2")
        finally:
            await watcher.close()
