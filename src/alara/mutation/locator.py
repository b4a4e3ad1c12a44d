"""
Locator resolution: build-time locator strings -> markup elements.

Element locators look like ``src/App.tsx:12:5`` (1-indexed line and column
of the element's ``<``). Style locators look like
``src/App.module.css:.button .primary``.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser, Tree

from alara.exceptions import LocatorError
from alara.logging_config import logger
from alara.schemas import SourceLocator
from .config import MARKUP_LANGUAGES


ELEMENT_TYPES = ("jsx_element", "jsx_self_closing_element")

_LANGUAGES: Dict[str, Language] = {}


def _language(name: str) -> Language:
    if name not in _LANGUAGES:
        if name == "tsx":
            _LANGUAGES[name] = Language(tstypescript.language_tsx())
        elif name == "typescript":
            _LANGUAGES[name] = Language(tstypescript.language_typescript())
        else:
            _LANGUAGES[name] = Language(tsjavascript.language())
    return _LANGUAGES[name]


def language_for(path: Path) -> Optional[str]:
    return MARKUP_LANGUAGES.get(Path(path).suffix.lower())


def parse_markup(text: str, language: str) -> Tree:
    parser = Parser()
    parser.language = _language(language)
    return parser.parse(text.encode("utf-8"))


# ============================================================================
# Locator strings
# ============================================================================

def parse_oid(oid: str) -> Tuple[str, int, int]:
    """
    Parse an element locator into (file, line, column).

    The two rightmost colon-separated fields are column and line; the rest is
    the path, so paths containing colons (C:\\src\\App.tsx) survive.

    Raises:
        LocatorError: malformed locator
    """
    if not oid:
        raise LocatorError(oid, "empty locator")

    parts = oid.split(":")
    if len(parts) < 3:
        raise LocatorError(oid, "expected <file>:<line>:<column>")

    column_text = parts.pop()
    line_text = parts.pop()
    file = ":".join(parts)

    try:
        line, column = int(line_text), int(column_text)
    except ValueError:
        raise LocatorError(oid, "line and column must be integers")

    if not file:
        raise LocatorError(oid, "missing file path")
    if line < 1 or column < 1:
        raise LocatorError(oid, "line and column are 1-indexed")

    return file, line, column


def parse_css_attribute(css: str) -> Tuple[str, List[str]]:
    """
    Parse a style locator into (style_file, selectors).

    The path ends at the first ':.'; selectors are space separated.

    Raises:
        LocatorError: malformed locator
    """
    if not css:
        raise LocatorError(css, "empty style locator")

    index = css.find(":.")
    if index == -1:
        raise LocatorError(css, "expected <file>:.<selector>")

    style_file = css[:index]
    selectors = css[index + 1:].split()
    if not style_file or not selectors:
        raise LocatorError(css, "missing file or selectors")
    return style_file, selectors


def parse_element_target(oid: str, css: Optional[str] = None) -> SourceLocator:
    """Build a SourceLocator from an element locator and optional style locator."""
    file, line, column = parse_oid(oid)
    style_file, selectors = "", []
    if css:
        style_file, selectors = parse_css_attribute(css)
    return SourceLocator(
        file=file,
        line_number=line,
        column=column,
        style_file=style_file,
        selectors=tuple(selectors),
    )


# ============================================================================
# Element lookup
# ============================================================================

def _byte_column(source: bytes, row: int, column: int) -> Optional[int]:
    lines = source.split(b"\n")
    if row >= len(lines):
        return None
    text = lines[row].decode("utf-8", errors="replace")
    return len(text[:column - 1].encode("utf-8"))


def find_element_at(tree: Tree, source: bytes, line: int, column: int) -> Optional[Node]:
    """
    Find the markup element at a 1-indexed line/column.

    Walks up from the smallest node at the position to the nearest element;
    a position on an opening or closing tag resolves to its element.

    Returns:
        jsx_element / jsx_self_closing_element node, or None
    """
    row = line - 1
    byte_column = _byte_column(source, row, column)
    if byte_column is None:
        logger.debug(f"Line {line} is past the end of the file")
        return None

    node = tree.root_node.descendant_for_point_range((row, byte_column), (row, byte_column))
    while node is not None:
        if node.type in ELEMENT_TYPES:
            return node
        node = node.parent
    return None


def element_tag(element: Node) -> str:
    """Tag name of an element node ('' for fragments)."""
    opening = element
    if element.type == "jsx_element":
        opening = element.child_by_field_name("open_tag") or element.children[0]
    name = opening.child_by_field_name("name")
    return name.text.decode("utf-8") if name is not None else ""
