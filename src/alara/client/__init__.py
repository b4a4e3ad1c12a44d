"""
Alara client: element selection, inline text editing and the websocket
channel that sends transforms to the dev server.
"""

from .behaviors import (
    TEXT_EDITABLE_TAGS,
    BehaviorRegistry,
    EditorBehavior,
    TextEditBehavior,
    build_default_behaviors,
    is_text_editable_element,
)
from .client import EditorClient
from .config import CLIENT_CONFIG
from .elements import Document, Element
from .events import FocusEvent, KeyboardEvent, MouseEvent
from .store import EditorState, EditorStore, PendingEdit, TextEditState
from .websocket import ReconnectingChannel

__all__ = [
    "TEXT_EDITABLE_TAGS",
    "BehaviorRegistry",
    "EditorBehavior",
    "TextEditBehavior",
    "build_default_behaviors",
    "is_text_editable_element",
    "EditorClient",
    "CLIENT_CONFIG",
    "Document",
    "Element",
    "FocusEvent",
    "KeyboardEvent",
    "MouseEvent",
    "EditorState",
    "EditorStore",
    "PendingEdit",
    "TextEditState",
    "ReconnectingChannel",
]
