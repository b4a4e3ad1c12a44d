"""
ReconnectingChannel: the client's websocket to the dev server.

Status goes connecting -> connected on open. An unexpected close schedules a
reconnect after min(initial_delay * 2**attempts, max_delay) until
max_attempts is reached, then the status becomes "error". close() is
intentional: no more reconnects, status "disconnected".
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp
from aiohttp import WSMsgType

from alara.logging_config import logger
from .config import CLIENT_CONFIG
from .store import EditorStore, Schedule, TimerHandle


Connector = Callable[[str], Awaitable[Any]]


class ReconnectingChannel:
    """
    One logical duplex channel per client session.

    Outbound messages go through a queue drained by a single writer task, so
    they reach the server in send order.
    """

    def __init__(
        self,
        store: EditorStore,
        url: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        connector: Optional[Connector] = None,
        schedule: Optional[Schedule] = None,
    ):
        """
        Args:
            store: Store that receives status changes and transform results
            url: Server websocket url (defaults to CLIENT_CONFIG["url"])
            config: Optional overrides for CLIENT_CONFIG
            connector: Coroutine url -> websocket; defaults to aiohttp ws_connect
            schedule: Timer factory; defaults to the store's scheduler
        """
        self.store = store
        self.config = {**CLIENT_CONFIG, **(config or {})}
        self.url = url or self.config["url"]
        self._connector = connector or self._aiohttp_connect
        self._schedule = schedule or store.schedule

        self.reconnect_attempts = 0
        self.task: Optional[asyncio.Task] = None
        self._ws = None
        self._session: Optional[aiohttp.ClientSession] = None
        self._reconnect_timer: Optional[TimerHandle] = None
        self._intentional_close = False
        self._outbound: Optional[asyncio.Queue] = None
        self._writer: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self.store.state.connection_status == "connected"

    def get_reconnect_delay(self) -> float:
        delay = self.config["initial_delay"] * (2 ** self.reconnect_attempts)
        return min(delay, self.config["max_delay"])

    async def _aiohttp_connect(self, url: str):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return await self._session.ws_connect(url)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> Optional[asyncio.Task]:
        """Start a connection attempt on the running loop."""
        if self._intentional_close:
            return None
        self.store.set_connection_status("connecting")
        self.task = asyncio.get_running_loop().create_task(self._run())
        return self.task

    async def _run(self):
        try:
            ws = await self._connector(self.url)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to create websocket to {self.url}: {e}")
            if self.reconnect_attempts < self.config["max_attempts"]:
                self.store.set_connection_status("disconnected", "Failed to create connection")
                self._schedule_reconnect()
            else:
                logger.error("Max reconnection attempts reached")
                self.store.set_connection_status("error", "Unable to connect to Alara server")
            return

        if self._intentional_close:
            await ws.close()
            return

        self._on_open(ws)
        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    self.handle_frame(msg.data)
                elif msg.type == WSMsgType.ERROR:
                    logger.error(f"Websocket error: {ws.exception()}")
        finally:
            self._on_close(getattr(ws, "close_code", None))

    def _on_open(self, ws):
        logger.info(f"Connected to {self.url}")
        self._ws = ws
        self.reconnect_attempts = 0
        self._outbound = asyncio.Queue()
        self._writer = asyncio.get_running_loop().create_task(self._drain(ws, self._outbound))
        self.store.set_channel(self)
        self.store.set_connection_status("connected")

    def _on_close(self, code: Optional[int]):
        logger.info(f"Disconnected (code: {code})")
        self._ws = None
        self._outbound = None
        if self._writer is not None:
            self._writer.cancel()
            self._writer = None
        self.store.set_channel(None)

        if self._intentional_close:
            self.store.set_connection_status("disconnected")
            return

        if self.reconnect_attempts < self.config["max_attempts"]:
            self.store.set_connection_status("disconnected")
            self._schedule_reconnect()
        else:
            logger.error("Max reconnection attempts reached")
            self.store.set_connection_status("error", "Unable to connect to Alara server")

    def _schedule_reconnect(self):
        delay = self.get_reconnect_delay()
        logger.info(
            f"Reconnecting in {delay:g}s "
            f"(attempt {self.reconnect_attempts + 1}/{self.config['max_attempts']})"
        )
        self._reconnect_timer = self._schedule(delay, self._reconnect)

    def _reconnect(self):
        self._reconnect_timer = None
        self.reconnect_attempts += 1
        self.connect()

    async def close(self):
        """Intentional teardown: cancel any pending reconnect and close the socket."""
        self._intentional_close = True

        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

        ws = self._ws
        if ws is not None:
            await ws.close()
        elif self.task is not None and not self.task.done():
            self.task.cancel()

        if self.task is not None and not self.task.done():
            try:
                await self.task
            except asyncio.CancelledError:
                pass

        if self._session is not None:
            await self._session.close()
            self._session = None

        self.store.set_channel(None)
        self.store.set_connection_status("disconnected")

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def _drain(self, ws, queue: asyncio.Queue):
        while True:
            text = await queue.get()
            try:
                await ws.send_str(text)
            except (aiohttp.ClientError, ConnectionError, RuntimeError) as e:
                logger.error(f"Failed to send message: {e}")

    def send_message(self, message: Dict[str, Any]) -> bool:
        """Queue a message for sending; a logged no-op when not connected."""
        if self._ws is None or self._outbound is None:
            logger.warning(f"Cannot send {message.get('action')!r}: not connected")
            return False
        self._outbound.put_nowait(json.dumps(message))
        return True

    def handle_frame(self, raw: str):
        """Route one inbound frame to the store."""
        try:
            message = json.loads(raw)
        except ValueError as e:
            logger.error(f"Failed to parse message: {e}")
            return
        if not isinstance(message, dict):
            logger.error(f"Ignoring non-object message: {raw[:200]}")
            return

        message_type = message.get("type")

        if message_type == "connected":
            logger.info("Server acknowledged connection")
        elif message_type == "transform-result":
            request_id = message.get("requestId")
            if not request_id:
                return
            if message.get("success"):
                self.store.mark_edit_committed(request_id)
            else:
                error = message.get("error") or {}
                self.store.mark_edit_failed(request_id, error.get("message", "Unknown error"))
        elif message_type == "pong":
            pass
        else:
            logger.info(f"Unknown message type: {message_type}")
