"""
Editor behaviors: per-element interaction handlers chosen by priority.

A behavior declares which elements it applies to and optionally handles
click, double-click, keydown and blur on them. For a given element the
highest-priority applicable behavior is the primary one.
"""

from typing import List, Optional

from alara.exceptions import DuplicateBehaviorError
from alara.logging_config import logger
from .elements import OID_ATTRIBUTE, Element
from .events import FocusEvent, KeyboardEvent, MouseEvent
from .store import EditorStore


TEXT_EDITABLE_TAGS = (
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "span", "label", "a",
    "li", "td", "th",
    "figcaption", "caption",
    "blockquote", "cite", "q",
    "dt", "dd",
)

EDITING_DATA_KEY = "alaraEditing"


def is_text_editable_element(element: Element) -> bool:
    return element.tag.lower() in TEXT_EDITABLE_TAGS


class EditorBehavior:
    """
    Base class for behaviors. Subclasses set ``id``, ``name`` and
    ``priority`` and override the hooks they handle.
    """

    id: str = ""
    name: str = ""
    priority: int = 0

    def applies_to(self, element: Element) -> bool:
        raise NotImplementedError

    def on_click(self, element: Element, event: MouseEvent, store: EditorStore) -> bool:
        """Return True if the click was handled (default selection is skipped)."""
        return False

    def on_double_click(self, element: Element, event: MouseEvent, store: EditorStore):
        pass

    def on_key_down(self, element: Element, event: KeyboardEvent, store: EditorStore):
        pass

    def on_blur(self, element: Element, event: FocusEvent, store: EditorStore):
        pass


class BehaviorRegistry:
    """Behaviors ordered by descending priority, registration order among equals."""

    def __init__(self):
        self._behaviors: List[EditorBehavior] = []

    def register(self, behavior: EditorBehavior):
        """
        Raises:
            DuplicateBehaviorError: a behavior with this id is already registered
        """
        if self.get_behavior_by_id(behavior.id) is not None:
            raise DuplicateBehaviorError(behavior.id)
        self._behaviors.append(behavior)
        self._behaviors.sort(key=lambda b: b.priority, reverse=True)
        logger.debug(f"Registered editor behavior: {behavior.id} (priority {behavior.priority})")

    def get_behaviors_for_element(self, element: Element) -> List[EditorBehavior]:
        return [b for b in self._behaviors if b.applies_to(element)]

    def get_primary_behavior(self, element: Element) -> Optional[EditorBehavior]:
        for behavior in self._behaviors:
            if behavior.applies_to(element):
                return behavior
        return None

    def get_all_behaviors(self) -> List[EditorBehavior]:
        return list(self._behaviors)

    def get_behavior_by_id(self, behavior_id: str) -> Optional[EditorBehavior]:
        for behavior in self._behaviors:
            if behavior.id == behavior_id:
                return behavior
        return None


class TextEditBehavior(EditorBehavior):
    """
    Inline text editing for headings, paragraphs, list items and similar.

    Double-click makes the element editable, focuses it and selects its text.
    Enter (no modifier) or losing focus commits; Escape restores the original
    text.
    """

    id = "text-edit"
    name = "Text Edit"
    priority = 10

    def applies_to(self, element: Element) -> bool:
        return is_text_editable_element(element)

    def on_double_click(self, element: Element, event: MouseEvent, store: EditorStore):
        event.prevent_default()
        event.stop_propagation()

        oid = element.get_attribute(OID_ATTRIBUTE) or ""
        original_text = element.text_content

        element.content_editable = True
        element.focus()
        if element.document is not None:
            element.document.selection.remove_all_ranges()
            element.document.selection.select_node_contents(element)

        store.start_text_editing(element, original_text, oid)
        element.dataset[EDITING_DATA_KEY] = "true"

    def _is_editing(self, element: Element, store: EditorStore) -> bool:
        state = store.get_text_edit_state()
        return state.is_editing and state.element is element

    def on_key_down(self, element: Element, event: KeyboardEvent, store: EditorStore):
        if not self._is_editing(element, store):
            return

        if event.key == "Enter" and not event.has_modifier:
            event.prevent_default()
            commit_edit(element, store)
        elif event.key == "Escape":
            event.prevent_default()
            cancel_edit(element, store)

    def on_blur(self, element: Element, event: FocusEvent, store: EditorStore):
        if not self._is_editing(element, store):
            return
        if element.contains(event.related_target):
            return

        def commit_if_still_editing():
            if self._is_editing(element, store):
                commit_edit(element, store)

        # Deferred one tick so an Escape handled in the same turn wins
        store.defer(commit_if_still_editing)


def _end_editing(element: Element):
    element.content_editable = False
    element.dataset.pop(EDITING_DATA_KEY, None)


def commit_edit(element: Element, store: EditorStore) -> Optional[str]:
    new_text = element.text_content
    _end_editing(element)
    return store.commit_text_edit(new_text)


def cancel_edit(element: Element, store: EditorStore):
    element.text_content = store.get_text_edit_state().original_text
    _end_editing(element)
    store.cancel_text_editing()


def build_default_behaviors() -> BehaviorRegistry:
    """A registry with the built-in behaviors registered."""
    registry = BehaviorRegistry()
    registry.register(TextEditBehavior())
    return registry
