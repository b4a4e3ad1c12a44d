"""
Websocket message envelopes.

Client -> server:
    {"action": "transform", "id": ..., "type": ..., "target": ..., "change": ...}
    {"action": "ping", "id": ...}

Server -> client:
    {"type": "connected"}
    {"type": "transform-result", "requestId": ..., "success": ..., ...}
    {"type": "pong", "requestId": ...}
    {"type": "error", "message": ...}
"""

import json
from typing import Any, Dict, Optional

from alara.schemas import TransformResult


CONNECTED = "connected"
TRANSFORM_RESULT = "transform-result"
PONG = "pong"
ERROR = "error"

ACTION_TRANSFORM = "transform"
ACTION_PING = "ping"


def connected_message() -> Dict[str, Any]:
    return {"type": CONNECTED}


def pong_message(request_id: Optional[str]) -> Dict[str, Any]:
    return {"type": PONG, "requestId": request_id}


def transform_result_message(result: TransformResult) -> Dict[str, Any]:
    return {"type": TRANSFORM_RESULT, **result.to_wire()}


def error_message(message: str) -> Dict[str, Any]:
    return {"type": ERROR, "message": message}


def encode(message: Dict[str, Any]) -> str:
    return json.dumps(message)


def decode(raw: str) -> Dict[str, Any]:
    """
    Parse an inbound frame.

    Raises:
        ValueError: not JSON, or not a JSON object
    """
    message = json.loads(raw)
    if not isinstance(message, dict):
        raise ValueError("Message must be a JSON object")
    return message


def is_transform_request(message: Dict[str, Any]) -> bool:
    return message.get("action") == ACTION_TRANSFORM and "type" in message and "id" in message
