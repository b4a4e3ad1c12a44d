"""
Tests for locator string parsing and element lookup in markup files.
"""

from pathlib import Path

import pytest

from alara.exceptions import LocatorError
from alara.mutation.locator import (
    element_tag,
    find_element_at,
    language_for,
    parse_css_attribute,
    parse_element_target,
    parse_markup,
    parse_oid,
)

from conftest import SIMPLE_TSX


class TestParseOid:

    def test_simple(self):
        assert parse_oid("src/App.tsx:12:5") == ("src/App.tsx", 12, 5)

    def test_windows_path_keeps_drive_colon(self):
        assert parse_oid("C:\\src\\App.tsx:3:7") == ("C:\\src\\App.tsx", 3, 7)

    @pytest.mark.parametrize("oid", [
        "",
        "App.tsx",
        "App.tsx:12",
        "App.tsx:a:5",
        ":12:5",
        "App.tsx:0:5",
        "App.tsx:3:0",
    ])
    def test_malformed(self, oid):
        with pytest.raises(LocatorError):
            parse_oid(oid)


class TestParseCssAttribute:

    def test_single_selector(self):
        assert parse_css_attribute("src/App.css:.title") == ("src/App.css", [".title"])

    def test_multiple_selectors(self):
        assert parse_css_attribute("src/App.module.css:.button .primary") == (
            "src/App.module.css",
            [".button", ".primary"],
        )

    @pytest.mark.parametrize("css", ["", "src/App.css", ":.title"])
    def test_malformed(self, css):
        with pytest.raises(LocatorError):
            parse_css_attribute(css)


class TestParseElementTarget:

    def test_with_style_locator(self):
        target = parse_element_target("src/App.tsx:4:7", "src/App.css:.title")
        assert target.file == "src/App.tsx"
        assert target.line_number == 4
        assert target.column == 7
        assert target.style_file == "src/App.css"
        assert target.selectors == (".title",)

    def test_without_style_locator(self):
        target = parse_element_target("src/App.tsx:4:7")
        assert target.style_file == ""
        assert target.selectors == ()
        assert target.to_wire() == {
            "file": "src/App.tsx",
            "lineNumber": 4,
            "column": 7,
            "styleFile": "",
            "selectors": [],
        }


class TestFindElementAt:

    @pytest.fixture
    def tree(self):
        return parse_markup(SIMPLE_TSX, "tsx")

    @pytest.fixture
    def source(self):
        return SIMPLE_TSX.encode("utf-8")

    @pytest.mark.parametrize("line,column,tag", [
        (3, 5, "div"),
        (4, 7, "h1"),
        (4, 11, "h1"),
        (4, 29, "h1"),
        (5, 7, "p"),
    ])
    def test_resolves_element(self, tree, source, line, column, tag):
        element = find_element_at(tree, source, line, column)
        assert element is not None
        assert element.type == "jsx_element"
        assert element_tag(element) == tag

    def test_self_closing(self, tree, source):
        element = find_element_at(tree, source, 6, 7)
        assert element.type == "jsx_self_closing_element"
        assert element_tag(element) == "img"

    def test_outside_markup(self, tree, source):
        assert find_element_at(tree, source, 1, 1) is None

    def test_past_end_of_file(self, tree, source):
        assert find_element_at(tree, source, 99, 1) is None


class TestLanguageFor:

    @pytest.mark.parametrize("name,language", [
        ("App.tsx", "tsx"),
        ("util.ts", "typescript"),
        ("App.jsx", "javascript"),
        ("index.JS", "javascript"),
        ("App.css", None),
    ])
    def test_language_for(self, name, language):
        assert language_for(Path(name)) == language
