"""
Tests for ReconnectingChannel and EditorClient.

The websocket is faked; timers go through the FakeScheduler so reconnect
delays are observed without sleeping.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest
from aiohttp import WSMsgType

from alara.client import Document, EditorClient, EditorStore, PendingEdit, ReconnectingChannel
from alara.mutation.locator import parse_element_target


class FakeWebSocket:
    """Async-iterable stand-in for an aiohttp client websocket."""

    def __init__(self):
        self.sent = []
        self.close_code = None
        self._incoming = asyncio.Queue()

    def feed(self, data):
        self._incoming.put_nowait(SimpleNamespace(type=WSMsgType.TEXT, data=data))

    def drop(self, code=1006):
        self.close_code = code
        self._incoming.put_nowait(None)

    async def send_str(self, data):
        self.sent.append(data)

    async def close(self):
        if self.close_code is None:
            self.drop(1000)

    def exception(self):
        return None

    def __aiter__(self):
        return self

    async def __anext__(self):
        msg = await self._incoming.get()
        if msg is None:
            raise StopAsyncIteration
        return msg


class FakeConnector:
    """Hands out FakeWebSockets, or raises while `refuse` is set."""

    def __init__(self, refuse=False):
        self.refuse = refuse
        self.sockets = []
        self.urls = []

    async def __call__(self, url):
        self.urls.append(url)
        if self.refuse:
            raise ConnectionRefusedError("connection refused")
        ws = FakeWebSocket()
        self.sockets.append(ws)
        return ws


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def store(scheduler):
    return EditorStore(schedule=scheduler)


def make_channel(store, connector):
    return ReconnectingChannel(store, "ws://localhost:4000/ws", connector=connector)


class TestReconnect:

    def test_reconnect_delay_backoff(self, store):
        channel = make_channel(store, FakeConnector())
        delays = []
        for attempts in range(6):
            channel.reconnect_attempts = attempts
            delays.append(channel.get_reconnect_delay())
        assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    @pytest.mark.asyncio
    async def test_failed_connects_back_off_then_give_up(self, store, scheduler):
        connector = FakeConnector(refuse=True)
        channel = make_channel(store, connector)

        await channel.connect()
        assert store.state.connection_status == "disconnected"
        assert store.state.connection_error == "Failed to create connection"
        assert scheduler.delays == [1.0]

        for _ in range(5):
            scheduler.run_next()
            await channel.task

        assert scheduler.delays == [1.0, 2.0, 4.0, 8.0, 10.0]
        assert len(connector.urls) == 6
        assert store.state.connection_status == "error"
        assert store.state.connection_error == "Unable to connect to Alara server"
        assert scheduler.active == []

    @pytest.mark.asyncio
    async def test_unexpected_close_reconnects(self, store, scheduler):
        connector = FakeConnector()
        channel = make_channel(store, connector)

        channel.connect()
        await settle()
        assert store.state.connection_status == "connected"
        assert channel.is_connected
        assert store.channel is channel

        connector.sockets[0].drop()
        await channel.task
        assert store.state.connection_status == "disconnected"
        assert store.channel is None
        assert scheduler.delays == [1.0]

        scheduler.run_next()
        await settle()
        assert store.state.connection_status == "connected"
        assert channel.reconnect_attempts == 0
        assert len(connector.sockets) == 2

        await channel.close()

    @pytest.mark.asyncio
    async def test_close_cancels_pending_reconnect(self, store, scheduler):
        connector = FakeConnector(refuse=True)
        channel = make_channel(store, connector)

        await channel.connect()
        assert len(scheduler.active) == 1

        await channel.close()

        assert scheduler.active == []
        assert store.state.connection_status == "disconnected"
        assert channel.connect() is None
        assert len(connector.urls) == 1


class TestMessaging:

    @pytest.mark.asyncio
    async def test_send_before_connect_is_dropped(self, store):
        channel = make_channel(store, FakeConnector())
        assert channel.send_message({"action": "ping", "id": "p"}) is False

    @pytest.mark.asyncio
    async def test_messages_are_sent_in_order(self, store):
        connector = FakeConnector()
        channel = make_channel(store, connector)
        channel.connect()
        await settle()

        for index in range(5):
            assert store.send_message({"action": "ping", "id": f"p{index}"})
        await settle()

        sent = [json.loads(raw)["id"] for raw in connector.sockets[0].sent]
        assert sent == ["p0", "p1", "p2", "p3", "p4"]

        await channel.close()
        assert store.state.connection_status == "disconnected"
        assert store.send_message({"action": "ping", "id": "late"}) is False

    @pytest.mark.asyncio
    async def test_inbound_results_reach_store(self, store, scheduler):
        target = parse_element_target("src/App.tsx:4:7")
        for edit_id in ("ok", "bad"):
            store.add_pending_edit(PendingEdit(id=edit_id, type="text-update", target=target, timestamp=0.0))

        connector = FakeConnector()
        channel = make_channel(store, connector)
        channel.connect()
        await settle()

        ws = connector.sockets[0]
        ws.feed(json.dumps({"type": "connected"}))
        ws.feed(json.dumps({"type": "transform-result", "requestId": "ok", "success": True, "affectedFiles": []}))
        ws.feed(json.dumps({
            "type": "transform-result",
            "requestId": "bad",
            "success": False,
            "error": {"code": "ELEMENT_NOT_FOUND", "message": "Text content mismatch"},
        }))
        await settle()

        assert store.state.pending_edits["ok"].status == "committed"
        assert store.state.pending_edits["bad"].status == "failed"
        assert store.state.pending_edits["bad"].error == "Text content mismatch"

        await channel.close()


class TestHandleFrame:

    @pytest.fixture
    def channel(self, store):
        store.add_pending_edit(PendingEdit(
            id="e1", type="text-update", target=parse_element_target("a.tsx:1:1"), timestamp=0.0
        ))
        return make_channel(store, FakeConnector())

    @pytest.mark.parametrize("raw", ["not json", "[]", json.dumps({"type": "mystery"}), json.dumps({"type": "pong"})])
    def test_ignored_frames(self, channel, store, raw):
        channel.handle_frame(raw)
        assert store.state.pending_edits["e1"].status == "pending"

    def test_failure_without_message(self, channel, store):
        channel.handle_frame(json.dumps({"type": "transform-result", "requestId": "e1", "success": False}))
        assert store.state.pending_edits["e1"].error == "Unknown error"

    def test_result_for_unknown_edit(self, channel, store):
        channel.handle_frame(json.dumps({"type": "transform-result", "requestId": "zzz", "success": True}))
        assert list(store.state.pending_edits) == ["e1"]


class TestEditorClient:

    @pytest.mark.asyncio
    async def test_lifecycle(self, scheduler):
        document = Document()
        connector = FakeConnector()
        client = EditorClient(document, port=4123, connector=connector, schedule=scheduler)

        client.start()
        client.start()
        await settle()

        assert connector.urls == ["ws://localhost:4123/ws"]
        assert client.store.state.connection_status == "connected"
        assert document.listener_count() == 6

        await client.destroy()

        assert document.listener_count() == 0
        assert client.store.state.connection_status == "disconnected"
        assert not client.started
