"""
Input events delivered to the client's document listeners.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .elements import Element


@dataclass
class Event:
    type: str
    target: Optional["Element"] = None
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self):
        self.default_prevented = True

    def stop_propagation(self):
        self.propagation_stopped = True


@dataclass
class MouseEvent(Event):
    """click, dblclick, mousemove, mouseleave"""
    pass


@dataclass
class KeyboardEvent(Event):
    key: str = ""
    shift_key: bool = False
    ctrl_key: bool = False
    alt_key: bool = False
    meta_key: bool = False

    @property
    def has_modifier(self) -> bool:
        return self.shift_key or self.ctrl_key or self.alt_key or self.meta_key


@dataclass
class FocusEvent(Event):
    """focusout; related_target is where focus went (None when it left the document)."""
    related_target: Optional["Element"] = None
