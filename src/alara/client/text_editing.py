"""
Keyboard and focus handling for an open text edit session.
"""

from typing import Callable

from .behaviors import BehaviorRegistry
from .elements import Document
from .events import FocusEvent, KeyboardEvent
from .store import EditorStore


def attach_text_edit_handlers(
    document: Document, store: EditorStore, behaviors: BehaviorRegistry
) -> Callable[[], None]:
    """Route keydown and focusout to the editing element's behavior. Returns a detach function."""

    def handle_key_down(event: KeyboardEvent):
        text_edit = store.state.text_edit
        if not text_edit.is_editing or text_edit.element is None:
            return
        element = text_edit.element
        behavior = behaviors.get_primary_behavior(element)
        if behavior is not None:
            behavior.on_key_down(element, event, store)

    def handle_focus_out(event: FocusEvent):
        text_edit = store.state.text_edit
        if not text_edit.is_editing or text_edit.element is None:
            return
        if event.target is not text_edit.element:
            return
        element = text_edit.element
        behavior = behaviors.get_primary_behavior(element)
        if behavior is not None:
            behavior.on_blur(element, event, store)

    removers = [
        document.add_event_listener("keydown", handle_key_down),
        document.add_event_listener("focusout", handle_focus_out),
    ]

    def detach():
        for remove in removers:
            remove()

    return detach
