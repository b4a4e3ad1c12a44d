"""
Tests for the dev server: message handling, the aiohttp app and the watcher.
"""

import asyncio
import json
import threading

import pytest
from aiohttp.test_utils import TestClient, TestServer
from pydantic import BaseModel
from watchdog.events import FileModifiedEvent

from alara.server import ConnectionHandler, create_app
from alara.server.watcher import InvalidatingEventHandler
from alara.transforms import (
    TransformContext,
    TransformHandler,
    TransformRegistry,
    build_default_registry,
    success_result,
)


TEXT_REQUEST = {
    "action": "transform",
    "id": "req-1",
    "type": "text-update",
    "target": {"file": "src/App.tsx", "lineNumber": 4, "column": 7},
    "change": {"originalText": "Hello World", "newText": "Welcome"},
}


@pytest.fixture
def connection(engine, temp_project):
    return ConnectionHandler(build_default_registry(), TransformContext(temp_project, engine))


class TestConnectionHandler:

    def test_on_open_sends_connected(self, connection):
        assert json.loads(connection.on_open()) == {"type": "connected"}

    def test_ping(self, connection):
        reply = json.loads(connection.handle_message(json.dumps({"action": "ping", "id": "p1"})))
        assert reply == {"type": "pong", "requestId": "p1"}

    def test_transform(self, connection, temp_project):
        reply = json.loads(connection.handle_message(json.dumps(TEXT_REQUEST)))
        assert reply["type"] == "transform-result"
        assert reply["requestId"] == "req-1"
        assert reply["success"] is True
        assert reply["affectedFiles"] == ["src/App.tsx"]
        assert "Welcome" in (temp_project / "src" / "App.tsx").read_text(encoding="utf-8")

    def test_failed_transform_keeps_request_id(self, connection):
        request = {**TEXT_REQUEST, "change": {"originalText": "Other", "newText": "x"}}
        reply = json.loads(connection.handle_message(json.dumps(request)))
        assert reply["success"] is False
        assert reply["requestId"] == "req-1"
        assert reply["error"]["code"] == "ELEMENT_NOT_FOUND"

    def test_unknown_transform_type(self, connection):
        request = {**TEXT_REQUEST, "type": "css-rename"}
        reply = json.loads(connection.handle_message(json.dumps(request)))
        assert reply["error"]["code"] == "VALIDATION_ERROR"
        assert reply["requestId"] == "req-1"

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", "42"])
    def test_invalid_frame(self, connection, raw):
        reply = json.loads(connection.handle_message(raw))
        assert reply["type"] == "error"
        assert reply["message"].startswith("Invalid message")

    def test_unknown_action_is_echoed(self, connection):
        raw = json.dumps({"action": "subscribe", "channel": "x"})
        assert connection.handle_message(raw) == raw
        assert connection.messages_handled == 1

    def test_results_follow_request_order(self, connection):
        first = {**TEXT_REQUEST, "id": "a"}
        second = {**TEXT_REQUEST, "id": "b", "change": {"originalText": "Welcome", "newText": "Again"}}
        replies = [json.loads(connection.handle_message(json.dumps(m))) for m in (first, second)]
        assert [r["requestId"] for r in replies] == ["a", "b"]
        assert all(r["success"] for r in replies)


class TestApp:

    @pytest.mark.asyncio
    async def test_health(self, engine, temp_project):
        async with TestClient(TestServer(create_app(temp_project, engine=engine))) as client:
            response = await client.get("/health")
            assert response.status == 200
            body = await response.json()
            assert body["status"] == "ok"
            assert body["projectDir"] == str(temp_project.resolve())
            assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_websocket_round_trip(self, engine, temp_project):
        async with TestClient(TestServer(create_app(temp_project, engine=engine))) as client:
            ws = await client.ws_connect("/ws")
            assert await ws.receive_json() == {"type": "connected"}

            await ws.send_str(json.dumps({"action": "ping", "id": "p1"}))
            assert await ws.receive_json() == {"type": "pong", "requestId": "p1"}

            await ws.send_str(json.dumps(TEXT_REQUEST))
            result = await ws.receive_json()
            assert result["type"] == "transform-result"
            assert result["success"] is True

            await ws.send_str("{broken")
            assert (await ws.receive_json())["type"] == "error"

            await ws.close()

        assert "Welcome" in (temp_project / "src" / "App.tsx").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_slow_transform_does_not_block_other_requests(self, engine, temp_project):
        class Payload(BaseModel):
            id: str

        class Gated(TransformHandler):
            type = "gated"
            schema = Payload

            def __init__(self):
                self.started = threading.Event()
                self.release = threading.Event()

            def execute(self, request, context):
                self.started.set()
                self.release.wait(timeout=5)
                return success_result(request.id, [])

        handler = Gated()
        registry = TransformRegistry()
        registry.register(handler)

        app = create_app(temp_project, registry=registry, engine=engine)
        async with TestClient(TestServer(app)) as client:
            ws = await client.ws_connect("/ws")
            await ws.receive_json()

            await ws.send_str(json.dumps({"action": "transform", "id": "g1", "type": "gated"}))
            assert await asyncio.get_running_loop().run_in_executor(None, handler.started.wait, 5)

            response = await client.get("/health")
            assert response.status == 200
            assert not handler.release.is_set()

            handler.release.set()
            result = await ws.receive_json()
            assert result["requestId"] == "g1"
            assert result["success"] is True

            await ws.close()

    @pytest.mark.asyncio
    async def test_plain_get_on_websocket_path(self, engine, temp_project):
        async with TestClient(TestServer(create_app(temp_project, engine=engine))) as client:
            response = await client.get("/ws")
            assert response.status == 400


class TestWatcher:

    def test_external_edit_invalidates_cache(self, engine, temp_project):
        engine.read_text("src/App.tsx", 4, 7)
        handler = InvalidatingEventHandler(engine)

        handler.on_any_event(FileModifiedEvent(str(temp_project / "src" / "App.tsx")))

        assert handler.events_processed == 1
        assert len(engine.cache) == 0

    @pytest.mark.parametrize("rel_path", [
        "node_modules/lib/index.js",
        ".alara/history/abc.json",
        "README.md",
    ])
    def test_ignored_paths(self, engine, rel_path):
        assert InvalidatingEventHandler(engine).should_ignore_path(rel_path)

    def test_watched_paths(self, engine):
        handler = InvalidatingEventHandler(engine)
        assert not handler.should_ignore_path("src/App.tsx")
        assert not handler.should_ignore_path("src\\styles\\App.css")

    def test_events_outside_project_are_ignored(self, engine, temp_dir):
        handler = InvalidatingEventHandler(engine)
        handler.on_any_event(FileModifiedEvent("/somewhere/else/App.tsx"))
        assert handler.events_processed == 0
