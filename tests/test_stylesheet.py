"""
Unit tests for the stylesheet document: rule lookup and minimal-splice edits.
"""

import pytest

from alara.styles import ColorValue, UnitValue, create_tuple_value, create_unit_value
from alara.styles.stylesheet import (
    add_rule,
    create_rule,
    find_all_rules,
    find_rule,
    find_rule_at_line,
    generate_css,
    get_containing_at_rule,
    get_declaration,
    get_declarations,
    get_media_query,
    get_node_location,
    get_style_value,
    is_in_media_query,
    normalize_selector,
    parse_css,
    parse_rule_styles,
    remove_declaration,
    set_declaration,
    set_style_value,
)

from conftest import SIMPLE_CSS


@pytest.fixture
def sheet():
    return parse_css(SIMPLE_CSS)


class TestRuleLookup:

    def test_normalize_selector(self):
        assert normalize_selector("  .Card   .Title ") == ".card .title"

    def test_find_rule_is_case_insensitive(self, sheet):
        rule = find_rule(sheet, ".TITLE")
        assert rule is not None
        assert rule.selector == ".title"
        assert get_node_location(rule).line == 6

    def test_find_rule_missing(self, sheet):
        assert find_rule(sheet, ".missing") is None

    def test_find_all_rules_includes_nested(self, sheet):
        rules = find_all_rules(sheet, ".title")
        assert [r.location.line for r in rules] == [6, 12]

    def test_find_rule_at_line(self, sheet):
        assert find_rule_at_line(sheet, ".title", 13).location.line == 12
        assert find_rule_at_line(sheet, ".title", 5).location.line == 6
        assert find_rule_at_line(sheet, ".title", 100, tolerance=10) is None

    def test_selector_lists(self):
        sheet = parse_css("h1, .heading {\n  margin: 0;\n}\n")
        assert find_rule(sheet, ".heading") is not None
        assert find_rule(sheet, "h1").selectors == ["h1", ".heading"]

    def test_media_query_helpers(self, sheet):
        top, nested = find_all_rules(sheet, ".title")
        assert not is_in_media_query(top)
        assert get_containing_at_rule(top) is None
        assert is_in_media_query(nested)
        assert get_media_query(nested) == "(max-width: 600px)"
        assert get_containing_at_rule(nested).location.line == 11

    def test_syntax_errors_are_reported(self):
        assert parse_css(".a { color: red; ").has_error
        assert not parse_css(SIMPLE_CSS).has_error


class TestDeclarations:

    def test_get_declaration(self, sheet):
        decl = get_declaration(find_rule(sheet, ".title"), "COLOR")
        assert decl.prop == "color"
        assert decl.value == "#ff0000"
        assert decl.location.line == 7
        assert not decl.important

    def test_important(self):
        sheet = parse_css(".a {\n  color: red !important;\n}\n")
        decl = get_declaration(find_rule(sheet, ".a"), "color")
        assert decl.value == "red"
        assert decl.important

    def test_get_declarations(self, sheet):
        assert get_declarations(find_rule(sheet, ".container")) == {
            "display": "flex",
            "padding": "16px",
        }

    def test_set_existing_preserves_everything_else(self, sheet):
        set_declaration(find_rule(sheet, ".title"), "color", "blue")
        assert generate_css(sheet) == SIMPLE_CSS.replace("color: #ff0000;", "color: blue;")

    def test_set_missing_appends_with_indent(self, sheet):
        decl = set_declaration(find_rule(sheet, ".container"), "margin", "0")
        assert decl.value == "0"
        assert sheet.text == SIMPLE_CSS.replace(
            "  padding: 16px;\n}", "  padding: 16px;\n  margin: 0;\n}"
        )

    def test_set_on_empty_rule(self):
        sheet = parse_css(".empty {}\n")
        set_declaration(find_rule(sheet, ".empty"), "color", "red")
        assert sheet.text == ".empty {\n  color: red;\n}\n"

    def test_set_keeps_important(self):
        sheet = parse_css(".a {\n  color: red !important;\n}\n")
        set_declaration(find_rule(sheet, ".a"), "color", "blue")
        assert sheet.text == ".a {\n  color: blue !important;\n}\n"

    def test_remove_owned_line(self, sheet):
        assert remove_declaration(find_rule(sheet, ".container"), "display")
        assert sheet.text == SIMPLE_CSS.replace("  display: flex;\n", "")

    def test_remove_inline(self):
        sheet = parse_css(".a { color: red; margin: 0; }")
        assert remove_declaration(find_rule(sheet, ".a"), "color")
        assert sheet.text == ".a { margin: 0; }"

    def test_remove_missing(self, sheet):
        assert not remove_declaration(find_rule(sheet, ".container"), "color")

    def test_rule_handle_survives_edits(self, sheet):
        rule = find_rule(sheet, ".title")
        set_declaration(rule, "color", "blue")
        set_declaration(rule, "font-size", "2rem")
        assert get_declarations(rule) == {"color": "blue", "font-size": "2rem"}


class TestStyleValues:

    def test_parse_rule_styles(self, sheet):
        styles = parse_rule_styles(find_rule(sheet, ".title"))
        assert isinstance(styles["color"], ColorValue)
        assert styles["font-size"] == UnitValue(value=24, unit="px")

    def test_get_style_value(self, sheet):
        rule = find_rule(sheet, ".container")
        assert get_style_value(rule, "padding") == UnitValue(value=16, unit="px")
        assert get_style_value(rule, "margin") is None

    def test_set_style_value(self, sheet):
        rule = find_rule(sheet, ".container")
        value = create_tuple_value([create_unit_value(8, "px"), create_unit_value(12, "px")])
        set_style_value(rule, "padding", value)
        assert "  padding: 8px 12px;\n" in sheet.text


class TestRuleCreation:

    def test_create_rule(self):
        assert create_rule(".a", {"margin": "0", "color": "red"}) == ".a {\n  margin: 0;\n  color: red;\n}\n"

    def test_add_rule(self, sheet):
        rule = add_rule(sheet, ".new", {"color": "red"})
        assert sheet.text == SIMPLE_CSS + "\n.new {\n  color: red;\n}\n"
        assert rule.selector == ".new"

    def test_add_rule_to_empty_sheet(self):
        sheet = parse_css("")
        add_rule(sheet, ".a", {"margin": "0"})
        assert sheet.text == ".a {\n  margin: 0;\n}\n"
