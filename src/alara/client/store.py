"""
EditorStore: client-side selection, hover, text-edit and pending-edit state.

All transitions run on one event loop; subscribers are notified after every
state change. Edits are optimistic: a committed text edit is dispatched and
tracked as a PendingEdit until the matching transform result arrives.
"""

import asyncio
import random
import string
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol

from alara.exceptions import LocatorError
from alara.logging_config import logger
from alara.mutation.locator import parse_element_target
from alara.schemas import SourceLocator
from .config import CLIENT_CONFIG
from .elements import CSS_ATTRIBUTE, OID_ATTRIBUTE, Element


ConnectionStatus = Literal["disconnected", "connecting", "connected", "error"]
PendingStatus = Literal["pending", "committed", "failed"]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Schedule = Callable[[float, Callable[[], None]], TimerHandle]


def loop_schedule(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule on the running event loop; a zero delay runs on the next tick."""
    loop = asyncio.get_running_loop()
    if delay <= 0:
        return loop.call_soon(callback)
    return loop.call_later(delay, callback)


@dataclass
class SelectedElement:
    element: Element
    target: Optional[SourceLocator]


@dataclass
class HoveredElement:
    element: Element


@dataclass
class TextEditState:
    is_editing: bool = False
    element: Optional[Element] = None
    original_text: str = ""
    oid: str = ""


@dataclass
class PendingEdit:
    id: str
    type: str
    target: SourceLocator
    timestamp: float
    status: PendingStatus = "pending"
    error: Optional[str] = None


@dataclass
class EditorState:
    connection_status: ConnectionStatus = "disconnected"
    connection_error: Optional[str] = None
    selected_element: Optional[SelectedElement] = None
    hovered_element: Optional[HoveredElement] = None
    text_edit: TextEditState = field(default_factory=TextEditState)
    pending_edits: Dict[str, PendingEdit] = field(default_factory=dict)


def element_target(element: Element) -> Optional[SourceLocator]:
    """Locator for an element's oid (and css) attributes, or None if it has no valid one."""
    oid = element.get_attribute(OID_ATTRIBUTE)
    if not oid:
        return None
    try:
        return parse_element_target(oid, element.get_attribute(CSS_ATTRIBUTE))
    except LocatorError as e:
        logger.warning(f"Ignoring element with bad locator: {e}")
        return None


def generate_edit_id(prefix: str = "text") -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


class EditorStore:
    """
    Owner of EditorState.

    Example:
        store = EditorStore()
        unsubscribe = store.subscribe(lambda state: print(state.selected_element))
        store.select_element(element, element_target(element))
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, schedule: Optional[Schedule] = None):
        """
        Args:
            config: Optional overrides for CLIENT_CONFIG
            schedule: Timer factory (delay seconds, callback) -> handle; defaults to the running loop
        """
        self.config = {**CLIENT_CONFIG, **(config or {})}
        self.state = EditorState()
        self.channel = None
        self._schedule = schedule or loop_schedule
        self._timers: List[TimerHandle] = []
        self._subscribers: List[Callable[[EditorState], None]] = []

    # ------------------------------------------------------------------
    # Subscription and timers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[EditorState], None]) -> Callable[[], None]:
        self._subscribers.append(listener)

        def unsubscribe():
            if listener in self._subscribers:
                self._subscribers.remove(listener)

        return unsubscribe

    def _set(self, **changes):
        self.state = replace(self.state, **changes)
        for listener in list(self._subscribers):
            try:
                listener(self.state)
            except Exception as e:
                logger.error(f"Error in store subscriber: {e}")

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds; cancelled by dispose()."""
        handle = None

        def run():
            if handle in self._timers:
                self._timers.remove(handle)
            callback()

        handle = self._schedule(delay, run)
        self._timers.append(handle)
        return handle

    def defer(self, callback: Callable[[], None]) -> TimerHandle:
        """Run callback on the next scheduling tick."""
        return self.schedule(0, callback)

    def dispose(self):
        for handle in self._timers:
            handle.cancel()
        self._timers = []
        self._subscribers = []

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def set_channel(self, channel):
        self.channel = channel

    def set_connection_status(self, status: ConnectionStatus, error: Optional[str] = None):
        self._set(connection_status=status, connection_error=error)

    def send_message(self, message: Dict[str, Any]) -> bool:
        """Send over the channel; returns False (nothing sent) when not connected."""
        if self.channel is None or not self.channel.is_connected:
            logger.debug(f"Not connected, dropping message: {message.get('action')}")
            return False
        return self.channel.send_message(message)

    # ------------------------------------------------------------------
    # Selection and hover
    # ------------------------------------------------------------------

    def select_element(self, element: Element, target: Optional[SourceLocator]):
        text_edit = self.state.text_edit
        if text_edit.element is not element:
            # A session open on another element is discarded, not committed
            if text_edit.is_editing:
                self.cancel_text_editing()
            text_edit = TextEditState()

        hovered = self.state.hovered_element
        if hovered is not None and hovered.element is element:
            hovered = None

        self._set(
            selected_element=SelectedElement(element, target),
            hovered_element=hovered,
            text_edit=text_edit,
        )

    def clear_selection(self):
        if self.state.text_edit.is_editing:
            self.cancel_text_editing()
        self._set(selected_element=None, text_edit=TextEditState())

    def hover_element(self, element: Element):
        if self.state.text_edit.is_editing:
            return
        selected = self.state.selected_element
        if selected is not None and selected.element is element:
            if self.state.hovered_element is not None:
                self.clear_hover()
            return
        self._set(hovered_element=HoveredElement(element))

    def clear_hover(self):
        self._set(hovered_element=None)

    # ------------------------------------------------------------------
    # Text editing
    # ------------------------------------------------------------------

    def start_text_editing(self, element: Element, original_text: str, oid: str):
        self._set(
            text_edit=TextEditState(is_editing=True, element=element, original_text=original_text, oid=oid),
            hovered_element=None,
        )

    def get_text_edit_state(self) -> TextEditState:
        return self.state.text_edit

    def commit_text_edit(self, new_text: str) -> Optional[str]:
        """
        End the edit session, dispatching a text-update if the text changed.

        Returns:
            The pending edit id, or None when nothing was dispatched
        """
        text_edit = self.state.text_edit
        selected = self.state.selected_element

        if not text_edit.is_editing or text_edit.element is None or selected is None or selected.target is None:
            self._set(text_edit=TextEditState())
            return None

        edit_id = None
        if new_text != text_edit.original_text:
            edit_id = generate_edit_id()
            self.add_pending_edit(
                PendingEdit(
                    id=edit_id,
                    type="text-update",
                    target=selected.target,
                    timestamp=time.time(),
                )
            )
            sent = self.send_message({
                "action": "transform",
                "id": edit_id,
                "type": "text-update",
                "target": selected.target.to_wire(),
                "change": {"originalText": text_edit.original_text, "newText": new_text},
            })
            if not sent:
                logger.warning(f"Edit {edit_id} not sent: no connection")

        self._set(text_edit=TextEditState())
        return edit_id

    def cancel_text_editing(self):
        text_edit = self.state.text_edit
        if text_edit.is_editing and text_edit.element is not None:
            text_edit.element.text_content = text_edit.original_text
            text_edit.element.content_editable = False
            text_edit.element.dataset.pop("alaraEditing", None)
        self._set(text_edit=TextEditState())

    # ------------------------------------------------------------------
    # Pending edits
    # ------------------------------------------------------------------

    def add_pending_edit(self, edit: PendingEdit):
        self._set(pending_edits={**self.state.pending_edits, edit.id: edit})

    def mark_edit_committed(self, edit_id: str):
        edit = self.state.pending_edits.get(edit_id)
        if edit is None:
            logger.debug(f"Ignoring result for unknown edit {edit_id}")
            return
        self._set(pending_edits={**self.state.pending_edits, edit_id: replace(edit, status="committed")})
        self.schedule(self.config["commit_prune_delay"], lambda: self.remove_pending_edit(edit_id))

    def mark_edit_failed(self, edit_id: str, error: str):
        edit = self.state.pending_edits.get(edit_id)
        if edit is None:
            logger.debug(f"Ignoring result for unknown edit {edit_id}")
            return
        logger.warning(f"Edit {edit_id} failed: {error}")
        self._set(pending_edits={**self.state.pending_edits, edit_id: replace(edit, status="failed", error=error)})

    def remove_pending_edit(self, edit_id: str):
        if edit_id not in self.state.pending_edits:
            return
        pending = dict(self.state.pending_edits)
        del pending[edit_id]
        self._set(pending_edits=pending)
