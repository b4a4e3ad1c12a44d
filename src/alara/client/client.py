"""
EditorClient: wires the store, behaviors, input handlers and channel together.
"""

from typing import Any, Callable, Dict, List, Optional

from alara.logging_config import logger
from .behaviors import BehaviorRegistry, build_default_behaviors
from .config import CLIENT_CONFIG, server_url
from .elements import Document
from .selection import attach_selection_handlers
from .store import EditorStore, Schedule
from .text_editing import attach_text_edit_handlers
from .websocket import Connector, ReconnectingChannel


class EditorClient:
    """
    A running editor session over one document.

    Example:
        client = EditorClient(document, port=4000)
        client.start()           # inside a running event loop
        ...
        await client.destroy()
    """

    def __init__(
        self,
        document: Document,
        port: Optional[int] = None,
        config: Optional[Dict[str, Any]] = None,
        behaviors: Optional[BehaviorRegistry] = None,
        connector: Optional[Connector] = None,
        schedule: Optional[Schedule] = None,
    ):
        self.config = {**CLIENT_CONFIG, **(config or {})}
        if port is not None:
            self.config["port"] = port
            self.config["url"] = server_url(port)

        self.document = document
        self.store = EditorStore(self.config, schedule=schedule)
        self.behaviors = behaviors or build_default_behaviors()
        self.channel = ReconnectingChannel(
            self.store, self.config["url"], self.config, connector=connector
        )
        self._cleanup: List[Callable[[], None]] = []
        self.started = False

    def start(self):
        """Attach input handlers and open the channel. Needs a running event loop."""
        if self.started:
            return
        self._cleanup.append(attach_selection_handlers(self.document, self.store, self.behaviors))
        self._cleanup.append(attach_text_edit_handlers(self.document, self.store, self.behaviors))
        self.channel.connect()
        self.started = True
        logger.info("Client initialized")

    async def destroy(self):
        """Detach every listener, cancel timers and close the channel."""
        for cleanup in self._cleanup:
            cleanup()
        self._cleanup = []
        await self.channel.close()
        self.store.dispose()
        self.started = False
        logger.info("Client destroyed")
