"""
Source mutation: resolve a locator, verify prior content, apply a minimal
edit, persist it and keep the history needed to revert it.
"""

from .facade import MutationEngine, EditOutcome
from .cache import SourceCache, CachedSource
from .editor import SourceWriter
from .undo import UndoStack
from .locator import (
    parse_oid,
    parse_css_attribute,
    parse_element_target,
    find_element_at,
)
from .config import MUTATION_CONFIG, get_mutation_config

__all__ = [
    # Main facade
    "MutationEngine",
    "EditOutcome",

    # Components
    "SourceCache",
    "CachedSource",
    "SourceWriter",
    "UndoStack",

    # Locators
    "parse_oid",
    "parse_css_attribute",
    "parse_element_target",
    "find_element_at",

    # Configuration
    "MUTATION_CONFIG",
    "get_mutation_config",
]
