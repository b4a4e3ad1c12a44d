"""
Text editing of markup elements.

Operates on in-memory source; the engine owns reading and persisting.
"""

from typing import List, Optional

from tree_sitter import Node, Tree

from alara.exceptions import TransformFailure
from alara.logging_config import logger
from alara.schemas import ErrorCode
from .locator import element_tag, find_element_at


TEXT_NODE_TYPES = ("jsx_text", "html_character_reference")

# Characters that would change the markup structure if written as raw text
JSX_SYNTAX_CHARACTERS = "{}<>"


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and trim, the way the browser renders text."""
    return " ".join(text.split())


def _text_run(element: Node) -> List[Node]:
    """
    The first non-empty direct text child plus any text nodes directly after
    it. Character references (&amp;) split jsx_text, so they join the run.
    """
    run = []
    for child in element.children:
        if run:
            if child.type in TEXT_NODE_TYPES:
                run.append(child)
                continue
            break
        if child.type == "jsx_text" and child.text.strip():
            run.append(child)
    return run


def _run_text(element: Node, run: List[Node]) -> str:
    if not run:
        return ""
    start = run[0].start_byte - element.start_byte
    end = run[-1].end_byte - element.start_byte
    return normalize_text(element.text[start:end].decode("utf-8"))


def get_text_content(element: Node) -> str:
    """Normalized text of the element's first direct text run ('' if none)."""
    if element.type != "jsx_element":
        return ""
    return _run_text(element, _text_run(element))


def _splice(source: bytes, start: int, end: int, text: str) -> bytes:
    return source[:start] + text.encode("utf-8") + source[end:]


def update_text_content(
    text: str,
    tree: Tree,
    line: int,
    column: int,
    original_text: Optional[str],
    new_text: str,
) -> str:
    """
    Replace the text of the element at line/column.

    Args:
        text: Current file content
        tree: Parse tree of `text`
        line: 1-indexed line of the element
        column: 1-indexed column of the element
        original_text: Text the client saw. When non-empty it must match the
            current text (whitespace-normalized) or nothing is changed.
        new_text: Replacement text

    Returns:
        The new file content

    Raises:
        TransformFailure: ELEMENT_NOT_FOUND (missing element, self-closing
            element, content mismatch) or VALIDATION_ERROR
    """
    source = text.encode("utf-8")
    element = find_element_at(tree, source, line, column)

    if element is None:
        raise TransformFailure(
            ErrorCode.ELEMENT_NOT_FOUND,
            f"No element found at line {line}, column {column}",
            {"line": line, "column": column},
        )

    if element.type == "jsx_self_closing_element":
        raise TransformFailure(
            ErrorCode.ELEMENT_NOT_FOUND,
            "Cannot update text content of self-closing element",
            {"tag": element_tag(element)},
        )

    if any(ch in new_text for ch in JSX_SYNTAX_CHARACTERS):
        raise TransformFailure(
            ErrorCode.VALIDATION_ERROR,
            "Text contains markup syntax characters ({, }, <, >)",
            {"newText": new_text},
        )

    run = _text_run(element)
    current = _run_text(element, run)

    if original_text and original_text.strip():
        expected = normalize_text(original_text)
        if current != expected:
            raise TransformFailure(
                ErrorCode.ELEMENT_NOT_FOUND,
                f'Text content mismatch. Expected "{expected}", found "{current}"',
                {"reason": "content-mismatch", "expected": expected, "found": current},
            )

    if run:
        start, end = run[0].start_byte, run[-1].end_byte
        raw = source[start:end].decode("utf-8")
        # Keep the surrounding whitespace, replace only the visible text
        leading = raw[:len(raw) - len(raw.lstrip())]
        trailing = raw[len(raw.rstrip()):]
        updated = _splice(source, start, end, f"{leading}{new_text}{trailing}")
    else:
        opening = element.child_by_field_name("open_tag") or element.children[0]
        closing = element.child_by_field_name("close_tag") or element.children[-1]
        has_children = any(
            child.type not in TEXT_NODE_TYPES
            for child in element.children
            if child.id not in (opening.id, closing.id)
        )
        if has_children:
            updated = _splice(source, opening.end_byte, opening.end_byte, new_text)
        else:
            updated = _splice(source, opening.end_byte, closing.start_byte, new_text)

    logger.debug(f"Updated text of <{element_tag(element)}> at {line}:{column}")
    return updated.decode("utf-8")
