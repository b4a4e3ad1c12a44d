"""
Headless element tree the client state machine operates on.

Mirrors the small part of a rendered page the editor needs: tags, attributes,
text, parent links, focus, content-editability and a text selection. Events
are dispatched to document-level listeners in registration order.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from alara.logging_config import logger
from .events import Event, FocusEvent


OID_ATTRIBUTE = "oid"
CSS_ATTRIBUTE = "css"
OVERLAY_ATTRIBUTE = "data-alara-overlay"

Listener = Callable[[Event], None]


class Element:
    """One node of the element tree."""

    def __init__(
        self,
        tag: str,
        attributes: Optional[Dict[str, str]] = None,
        text: str = "",
        document: Optional["Document"] = None,
    ):
        self.tag = tag.lower()
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.text = text
        self.document = document
        self.parent: Optional["Element"] = None
        self.children: List["Element"] = []
        self.content_editable = False
        self.dataset: Dict[str, str] = {}

    def __repr__(self) -> str:
        oid = self.attributes.get(OID_ATTRIBUTE)
        return f"<Element {self.tag}{f' oid={oid}' if oid else ''}>"

    # Attributes

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str):
        self.attributes[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def remove_attribute(self, name: str):
        self.attributes.pop(name, None)

    # Tree

    def append(self, child: "Element") -> "Element":
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        child.document = self.document
        self.children.append(child)
        return child

    def ancestors(self):
        """Yield this element and every ancestor, innermost first."""
        node = self
        while node is not None:
            yield node
            node = node.parent

    def closest(self, attribute: str) -> Optional["Element"]:
        """Nearest element (self included) carrying ``attribute``."""
        for node in self.ancestors():
            if node.has_attribute(attribute):
                return node
        return None

    def contains(self, other: Optional["Element"]) -> bool:
        if other is None:
            return False
        return any(node is self for node in other.ancestors())

    # Text

    @property
    def text_content(self) -> str:
        return self.text + "".join(child.text_content for child in self.children)

    @text_content.setter
    def text_content(self, value: str):
        for child in self.children:
            child.parent = None
        self.children = []
        self.text = value

    # Focus

    def focus(self):
        if self.document is not None:
            self.document.focus(self)

    def blur(self):
        if self.document is not None and self.document.active_element is self:
            self.document.focus(None)


@dataclass
class TextRange:
    """A selection spanning the contents of one element."""
    element: Element
    start: int
    end: int

    @property
    def text(self) -> str:
        return self.element.text_content[self.start:self.end]


class Selection:
    """The document's text selection (at most one range)."""

    def __init__(self):
        self.ranges: List[TextRange] = []

    def remove_all_ranges(self):
        self.ranges = []

    def select_node_contents(self, element: Element):
        self.ranges = [TextRange(element, 0, len(element.text_content))]

    @property
    def range(self) -> Optional[TextRange]:
        return self.ranges[0] if self.ranges else None


class Document:
    """
    Root of the element tree plus listeners, focus and selection.

    Listeners are added per event type and removed through the callable that
    add_event_listener() returns.
    """

    def __init__(self):
        self.body = Element("body", document=self)
        self.active_element: Optional[Element] = None
        self.selection = Selection()
        self._listeners: Dict[str, List[Listener]] = {}

    def create_element(
        self,
        tag: str,
        attributes: Optional[Dict[str, str]] = None,
        text: str = "",
        parent: Optional[Element] = None,
    ) -> Element:
        element = Element(tag, attributes, text, document=self)
        (parent or self.body).append(element)
        return element

    def add_event_listener(self, event_type: str, listener: Listener) -> Callable[[], None]:
        self._listeners.setdefault(event_type, []).append(listener)

        def remove():
            listeners = self._listeners.get(event_type, [])
            if listener in listeners:
                listeners.remove(listener)

        return remove

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def dispatch(self, event: Event) -> Event:
        for listener in list(self._listeners.get(event.type, [])):
            listener(event)
        return event

    def focus(self, element: Optional[Element]):
        """Move focus, firing focusout on the element that loses it."""
        previous = self.active_element
        if previous is element:
            return
        self.active_element = element
        if previous is not None:
            logger.debug(f"Focus moved from {previous!r} to {element!r}")
            self.dispatch(FocusEvent("focusout", target=previous, related_target=element))
