"""
Per-connection message handling, independent of the websocket library.
"""

from typing import Optional

from alara.logging_config import logger
from alara.transforms.registry import TransformContext, TransformRegistry
from . import protocol


class ConnectionHandler:
    """
    Turns inbound frames into outbound frames for one client connection.

    Each frame is handled to completion before the caller reads the next, so
    results on one connection go out in request order.
    """

    def __init__(self, registry: TransformRegistry, context: TransformContext):
        self.registry = registry
        self.context = context
        self.messages_handled = 0

    def on_open(self) -> str:
        logger.info("Client connected")
        return protocol.encode(protocol.connected_message())

    def on_close(self, code: Optional[int] = None):
        logger.info(f"Client disconnected (code: {code})")

    def handle_message(self, raw: str) -> str:
        """
        Handle one inbound frame.

        Returns:
            The frame to send back. Unrecognized actions are echoed unchanged.
        """
        self.messages_handled += 1

        try:
            message = protocol.decode(raw)
        except ValueError as e:
            logger.warning(f"Failed to process message: {e}")
            return protocol.encode(protocol.error_message(f"Invalid message: {e}"))

        action = message.get("action")

        if action == protocol.ACTION_PING:
            logger.debug(f"Ping received: {message.get('id')}")
            return protocol.encode(protocol.pong_message(message.get("id")))

        if protocol.is_transform_request(message):
            logger.info(f"Transform request: {message['type']} {message['id']}")
            result = self.registry.execute(message["type"], message, self.context)
            if not result.request_id and isinstance(message["id"], str):
                result = result.model_copy(update={"request_id": message["id"]})
            return protocol.encode(protocol.transform_result_message(result))

        logger.debug(f"Unrecognized message echoed back: {raw[:200]}")
        return raw
