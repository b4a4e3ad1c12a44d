"""
Selection and hover handling.

Clicks on a locatable element (one with an ``oid`` ancestor) select it or
hand it to its primary behavior; clicks elsewhere clear the selection and
cancel any edit session. Hover is suppressed while editing.
"""

from typing import Callable, Optional

from alara.logging_config import logger
from .behaviors import BehaviorRegistry
from .elements import OID_ATTRIBUTE, OVERLAY_ATTRIBUTE, Document, Element
from .events import MouseEvent
from .store import EditorStore, element_target


def find_editable_element(target) -> Optional[Element]:
    if not isinstance(target, Element):
        return None
    return target.closest(OID_ATTRIBUTE)


def attach_selection_handlers(
    document: Document, store: EditorStore, behaviors: BehaviorRegistry
) -> Callable[[], None]:
    """
    Attach click/dblclick/mousemove/mouseleave listeners.

    Returns:
        A function that removes every listener it attached
    """

    def handle_click(event: MouseEvent):
        target = event.target
        if isinstance(target, Element) and target.closest(OVERLAY_ATTRIBUTE) is not None:
            return

        element = find_editable_element(target)
        text_edit = store.state.text_edit

        if text_edit.is_editing and element is not None and element is text_edit.element:
            # Clicks inside the element being edited move the caret
            return

        if element is None:
            store.clear_selection()
            return

        event.prevent_default()
        event.stop_propagation()

        behavior = behaviors.get_primary_behavior(element)
        if behavior is not None and behavior.on_click(element, event, store):
            return
        store.select_element(element, element_target(element))
        logger.debug(f"Selected {element!r}")

    def handle_double_click(event: MouseEvent):
        element = find_editable_element(event.target)
        if element is None:
            return
        behavior = behaviors.get_primary_behavior(element)
        if behavior is not None:
            behavior.on_double_click(element, event, store)

    def handle_mouse_move(event: MouseEvent):
        if store.state.text_edit.is_editing:
            return

        element = find_editable_element(event.target)
        hovered = store.state.hovered_element

        if element is not None:
            if hovered is None or hovered.element is not element:
                store.hover_element(element)
        elif hovered is not None:
            store.clear_hover()

    def handle_mouse_leave(event: MouseEvent):
        store.clear_hover()

    removers = [
        document.add_event_listener("click", handle_click),
        document.add_event_listener("dblclick", handle_double_click),
        document.add_event_listener("mousemove", handle_mouse_move),
        document.add_event_listener("mouseleave", handle_mouse_leave),
    ]

    def detach():
        for remove in removers:
            remove()

    return detach
