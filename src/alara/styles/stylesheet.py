"""
Stylesheet: tree-sitter backed CSS document with minimal-splice editing.

Every edit replaces only the bytes of the declaration it touches and then
re-parses, so formatting and comments elsewhere in the file survive
byte-for-byte.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

import tree_sitter_css as tscss
from tree_sitter import Language, Node, Parser

from alara.logging_config import logger
from .parser import parse_css_value, split_top_level
from .serializer import to_value
from .values import StyleValue


_CSS_LANGUAGE = Language(tscss.language())

AT_RULE_TYPES = {
    "media_statement": "media",
    "supports_statement": "supports",
    "at_rule": None,
}

DEFAULT_INDENT = "  "


@dataclass(frozen=True)
class NodeLocation:
    line: int    # 1-indexed
    column: int  # 1-indexed, in characters


@dataclass(frozen=True)
class Declaration:
    """Snapshot of a declaration at the time it was read."""
    prop: str
    value: str
    important: bool
    location: NodeLocation


@dataclass(frozen=True)
class AtRule:
    name: str
    params: str
    location: NodeLocation


def normalize_selector(selector: str) -> str:
    """Trim, collapse internal whitespace and lowercase a selector."""
    return " ".join(selector.split()).lower()


def _location(source: bytes, node: Node) -> NodeLocation:
    row, byte_column = node.start_point
    line_start = node.start_byte - byte_column
    column = len(source[line_start:node.start_byte].decode("utf-8", errors="replace"))
    return NodeLocation(line=row + 1, column=column + 1)


def _line_indent(source: bytes, offset: int) -> bytes:
    line_start = source.rfind(b"\n", 0, offset) + 1
    line = source[line_start:offset]
    return line[:len(line) - len(line.lstrip())]


class Stylesheet:
    """A parsed CSS document."""

    def __init__(self, text: str):
        self._parser = Parser()
        self._parser.language = _CSS_LANGUAGE
        self._source = text.encode("utf-8")
        self._tree = self._parser.parse(self._source)

    @property
    def text(self) -> str:
        return self._source.decode("utf-8")

    @property
    def source(self) -> bytes:
        return self._source

    @property
    def root(self) -> Node:
        return self._tree.root_node

    @property
    def has_error(self) -> bool:
        return self._tree.root_node.has_error

    def rule_nodes(self) -> List[Node]:
        """All rule_set nodes in document order, including nested ones."""
        found = []
        stack = [self._tree.root_node]
        while stack:
            node = stack.pop()
            if node.type == "rule_set":
                found.append(node)
            stack.extend(reversed(node.children))
        return found

    def rules(self) -> List["Rule"]:
        return [Rule(self, index) for index in range(len(self.rule_nodes()))]

    def node_text(self, node: Node) -> str:
        return self._source[node.start_byte:node.end_byte].decode("utf-8")

    def splice(self, start: int, end: int, replacement: bytes):
        """Replace a byte range and re-parse."""
        self._source = self._source[:start] + replacement + self._source[end:]
        self._tree = self._parser.parse(self._source)


class Rule:
    """
    Live handle on the n-th rule_set of a stylesheet.

    The underlying tree is replaced after every edit; the handle re-resolves
    its node by ordinal, which declaration edits never change.
    """

    def __init__(self, sheet: Stylesheet, index: int):
        self.sheet = sheet
        self.index = index

    @property
    def node(self) -> Node:
        return self.sheet.rule_nodes()[self.index]

    def _child(self, node_type: str) -> Optional[Node]:
        for child in self.node.children:
            if child.type == node_type:
                return child
        return None

    @property
    def block(self) -> Optional[Node]:
        return self._child("block")

    @property
    def selector(self) -> str:
        selectors = self._child("selectors")
        return self.sheet.node_text(selectors).strip() if selectors else ""

    @property
    def selectors(self) -> List[str]:
        return [s for s in split_top_level(self.selector, ",") if s]

    @property
    def location(self) -> NodeLocation:
        return _location(self.sheet.source, self.node)

    def declaration_nodes(self) -> List[Node]:
        block = self.block
        if block is None:
            return []
        return [child for child in block.children if child.type == "declaration"]

    def __repr__(self):
        return f"Rule({self.selector!r}, line={self.location.line})"


# ============================================================================
# Document operations
# ============================================================================

def parse_css(text: str) -> Stylesheet:
    sheet = Stylesheet(text)
    if sheet.has_error:
        logger.debug("Stylesheet parsed with syntax errors")
    return sheet


def generate_css(sheet: Stylesheet) -> str:
    return sheet.text


def _matches(rule: Rule, normalized: str) -> bool:
    return normalized in (normalize_selector(s) for s in rule.selectors)


def find_all_rules(sheet: Stylesheet, selector: str) -> List[Rule]:
    normalized = normalize_selector(selector)
    return [rule for rule in sheet.rules() if _matches(rule, normalized)]


def find_rule(sheet: Stylesheet, selector: str) -> Optional[Rule]:
    """First rule listing the selector (case-insensitive, whitespace-normalized)."""
    rules = find_all_rules(sheet, selector)
    return rules[0] if rules else None


def find_rule_at_line(
    sheet: Stylesheet,
    selector: str,
    line: int,
    tolerance: int = 10,
) -> Optional[Rule]:
    """
    Find the matching rule whose start line is closest to `line`.

    Args:
        sheet: Parsed stylesheet
        selector: Selector to match
        line: Target line (1-indexed)
        tolerance: Maximum accepted distance in lines

    Returns:
        Closest rule within tolerance, or None
    """
    best = None
    best_distance = None
    for rule in find_all_rules(sheet, selector):
        distance = abs(rule.location.line - line)
        if distance > tolerance:
            continue
        if best_distance is None or distance < best_distance:
            best, best_distance = rule, distance
    return best


# ============================================================================
# Declaration operations
# ============================================================================

def _declaration_parts(sheet: Stylesheet, node: Node):
    """Return (prop, value_start, value_end, important) for a declaration node."""
    prop = None
    colon_end = None
    important = None
    semicolon = None
    for child in node.children:
        if child.type == "property_name" and prop is None:
            prop = sheet.node_text(child)
        elif child.type == ":" and colon_end is None:
            colon_end = child.end_byte
        elif child.type == "important":
            important = child
        elif child.type == ";":
            semicolon = child

    if colon_end is None:
        colon_end = node.end_byte
    if important is not None:
        value_end = important.start_byte
    elif semicolon is not None:
        value_end = semicolon.start_byte
    else:
        value_end = node.end_byte
    return prop, colon_end, value_end, important is not None


def _snapshot(sheet: Stylesheet, node: Node) -> Declaration:
    prop, start, end, important = _declaration_parts(sheet, node)
    value = sheet.source[start:end].decode("utf-8").strip()
    return Declaration(
        prop=prop or "",
        value=value,
        important=important,
        location=_location(sheet.source, node),
    )


def _find_declaration_node(rule: Rule, property: str) -> Optional[Node]:
    wanted = property.lower()
    for node in rule.declaration_nodes():
        prop, _, _, _ = _declaration_parts(rule.sheet, node)
        if prop and prop.lower() == wanted:
            return node
    return None


def get_declaration(rule: Rule, property: str) -> Optional[Declaration]:
    """Find a declaration by property name (case-insensitive)."""
    node = _find_declaration_node(rule, property)
    return _snapshot(rule.sheet, node) if node is not None else None


def get_declarations(rule: Rule) -> Dict[str, str]:
    """Property -> raw value for every declaration, in source order."""
    result = {}
    for node in rule.declaration_nodes():
        decl = _snapshot(rule.sheet, node)
        result[decl.prop] = decl.value
    return result


def _append_declaration(rule: Rule, property: str, value: str):
    sheet = rule.sheet
    source = sheet.source
    line = f"{property}: {value};".encode("utf-8")
    nodes = rule.declaration_nodes()
    block = rule.block

    if nodes:
        last = nodes[-1]
        prefix = b"" if any(child.type == ";" for child in last.children) else b";"
        open_brace = block.children[0]
        if last.start_point[0] == open_brace.start_point[0]:
            sheet.splice(last.end_byte, last.end_byte, prefix + b" " + line)
        else:
            indent = _line_indent(source, last.start_byte)
            sheet.splice(last.end_byte, last.end_byte, prefix + b"\n" + indent + line)
        return

    open_brace = block.children[0]
    close_brace = block.children[-1]
    interior = source[open_brace.end_byte:close_brace.start_byte]
    rule_indent = _line_indent(source, rule.node.start_byte)
    if interior.strip():
        sheet.splice(close_brace.start_byte, close_brace.start_byte, b" " + line + b" ")
    else:
        indent = rule_indent + DEFAULT_INDENT.encode("utf-8")
        sheet.splice(
            open_brace.end_byte,
            close_brace.start_byte,
            b"\n" + indent + line + b"\n" + rule_indent,
        )


def set_declaration(rule: Rule, property: str, value: str) -> Declaration:
    """
    Update a declaration's value in place, or append it if missing.

    Returns:
        Snapshot of the declaration after the edit
    """
    sheet = rule.sheet
    node = _find_declaration_node(rule, property)

    if node is None:
        _append_declaration(rule, property, value)
    else:
        _, start, end, _ = _declaration_parts(sheet, node)
        raw = sheet.source[start:end]
        leading = raw[:len(raw) - len(raw.lstrip())] or b" "
        trailing = raw[len(raw.rstrip()):]
        sheet.splice(start, end, leading + value.encode("utf-8") + trailing)

    return get_declaration(rule, property)


def remove_declaration(rule: Rule, property: str) -> bool:
    """Remove a declaration. Returns False when it did not exist."""
    node = _find_declaration_node(rule, property)
    if node is None:
        return False

    sheet = rule.sheet
    source = sheet.source
    start, end = node.start_byte, node.end_byte

    line_start = source.rfind(b"\n", 0, start) + 1
    line_end = source.find(b"\n", end)
    if line_end == -1:
        line_end = len(source)

    if not source[line_start:start].strip() and not source[end:line_end].strip():
        # Declaration owns its line
        sheet.splice(line_start, min(line_end + 1, len(source)), b"")
    else:
        while end < len(source) and source[end:end + 1] in (b" ", b"\t"):
            end += 1
        sheet.splice(start, end, b"")
    return True


# ============================================================================
# StyleValue integration
# ============================================================================

def parse_rule_styles(rule: Rule) -> Dict[str, StyleValue]:
    return {prop: parse_css_value(prop, value) for prop, value in get_declarations(rule).items()}


def get_style_value(rule: Rule, property: str) -> Optional[StyleValue]:
    decl = get_declaration(rule, property)
    if decl is None:
        return None
    return parse_css_value(property, decl.value)


def set_style_value(rule: Rule, property: str, value: StyleValue) -> Declaration:
    return set_declaration(rule, property, to_value(value))


# ============================================================================
# Rule creation
# ============================================================================

def create_rule(selector: str, declarations: Mapping[str, str]) -> str:
    """Render a new rule as CSS text."""
    body = "".join(f"{DEFAULT_INDENT}{prop}: {value};\n" for prop, value in declarations.items())
    return f"{selector} {{\n{body}}}\n"


def add_rule(sheet: Stylesheet, selector: str, declarations: Mapping[str, str]) -> Rule:
    """Append a new top-level rule to the end of the stylesheet."""
    source = sheet.source
    if not source.strip() or source.endswith(b"\n\n"):
        separator = b""
    elif source.endswith(b"\n"):
        separator = b"\n"
    else:
        separator = b"\n\n"
    sheet.splice(len(source), len(source), separator + create_rule(selector, declarations).encode("utf-8"))
    return Rule(sheet, len(sheet.rule_nodes()) - 1)


# ============================================================================
# Location and at-rule helpers
# ============================================================================

def get_node_location(rule: Rule) -> NodeLocation:
    return rule.location


def get_containing_at_rule(rule: Rule) -> Optional[AtRule]:
    """The at-rule (e.g. @media) whose block directly contains the rule."""
    parent = rule.node.parent
    if parent is None or parent.type != "block":
        return None
    at_node = parent.parent
    if at_node is None or at_node.type not in AT_RULE_TYPES:
        return None

    sheet = rule.sheet
    keyword = at_node.children[0]
    name = AT_RULE_TYPES[at_node.type] or sheet.node_text(keyword).lstrip("@")
    params = sheet.source[keyword.end_byte:parent.start_byte].decode("utf-8").strip()
    return AtRule(name=name.lower(), params=params, location=_location(sheet.source, at_node))


def is_in_media_query(rule: Rule) -> bool:
    at_rule = get_containing_at_rule(rule)
    return at_rule is not None and at_rule.name == "media"


def get_media_query(rule: Rule) -> Optional[str]:
    at_rule = get_containing_at_rule(rule)
    if at_rule is not None and at_rule.name == "media":
        return at_rule.params
    return None
