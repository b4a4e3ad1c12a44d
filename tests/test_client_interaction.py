"""
Tests for the document-level input handlers and the text-edit behavior.
"""

import pytest

from alara.client import (
    BehaviorRegistry,
    Document,
    EditorBehavior,
    EditorStore,
    FocusEvent,
    KeyboardEvent,
    MouseEvent,
    TextEditBehavior,
    build_default_behaviors,
    is_text_editable_element,
)
from alara.client.selection import attach_selection_handlers, find_editable_element
from alara.client.text_editing import attach_text_edit_handlers
from alara.exceptions import DuplicateBehaviorError


class RecordingChannel:
    is_connected = True

    def __init__(self):
        self.sent = []

    def send_message(self, message):
        self.sent.append(message)
        return True


@pytest.fixture
def document():
    return Document()


@pytest.fixture
def page(document):
    """A section holding a heading (with a nested span) and a plain div."""
    section = document.create_element("section", {"oid": "src/App.tsx:2:5"})
    heading = document.create_element(
        "h1", {"oid": "src/App.tsx:3:7", "css": "src/App.css:.title"}, "Hello World", parent=section
    )
    div = document.create_element("div", {"oid": "src/App.tsx:4:7"}, parent=section)
    outside = document.create_element("footer")
    overlay = document.create_element("div", {"data-alara-overlay": "true"})
    return {"section": section, "heading": heading, "div": div, "outside": outside, "overlay": overlay}


@pytest.fixture
def store(scheduler):
    store = EditorStore(schedule=scheduler)
    store.set_channel(RecordingChannel())
    return store


@pytest.fixture
def attached(document, store):
    behaviors = build_default_behaviors()
    detach_selection = attach_selection_handlers(document, store, behaviors)
    detach_text = attach_text_edit_handlers(document, store, behaviors)
    yield behaviors
    detach_selection()
    detach_text()


def click(document, target):
    return document.dispatch(MouseEvent("click", target=target))


def double_click(document, target):
    return document.dispatch(MouseEvent("dblclick", target=target))


def key(document, name, **modifiers):
    return document.dispatch(KeyboardEvent("keydown", key=name, **modifiers))


class TestBehaviorRegistry:

    def test_text_editable_tags(self, document):
        assert is_text_editable_element(document.create_element("H2"))
        assert is_text_editable_element(document.create_element("li"))
        assert not is_text_editable_element(document.create_element("div"))
        assert not is_text_editable_element(document.create_element("img"))

    def test_priority_order(self, document):
        class Low(EditorBehavior):
            id, name, priority = "low", "Low", 1

            def applies_to(self, element):
                return True

        registry = BehaviorRegistry()
        registry.register(Low())
        registry.register(TextEditBehavior())

        heading = document.create_element("h1")
        assert [b.id for b in registry.get_all_behaviors()] == ["text-edit", "low"]
        assert registry.get_primary_behavior(heading).id == "text-edit"
        assert registry.get_primary_behavior(document.create_element("div")).id == "low"
        assert len(registry.get_behaviors_for_element(heading)) == 2
        assert registry.get_behavior_by_id("missing") is None

    def test_duplicate_id(self):
        registry = build_default_behaviors()
        with pytest.raises(DuplicateBehaviorError):
            registry.register(TextEditBehavior())


class TestSelection:

    def test_click_selects_nearest_locatable_element(self, document, store, page, attached):
        span = document.create_element("span", parent=page["div"])
        event = click(document, span)

        selected = store.state.selected_element
        assert selected.element is page["div"]
        assert selected.target.line_number == 4
        assert event.default_prevented
        assert event.propagation_stopped

    def test_find_editable_element(self, page):
        assert find_editable_element(page["heading"]) is page["heading"]
        assert find_editable_element(page["outside"]) is None
        assert find_editable_element(None) is None

    def test_click_outside_clears_selection(self, document, store, page, attached):
        click(document, page["heading"])
        event = click(document, page["outside"])
        assert store.state.selected_element is None
        assert not event.default_prevented

    def test_overlay_clicks_are_ignored(self, document, store, page, attached):
        click(document, page["heading"])
        click(document, page["overlay"])
        assert store.state.selected_element.element is page["heading"]

    def test_behavior_can_handle_click(self, document, store, page):
        class Claims(EditorBehavior):
            id, name, priority = "claims", "Claims", 100

            def __init__(self):
                self.clicked = []

            def applies_to(self, element):
                return element.tag == "div"

            def on_click(self, element, event, store):
                self.clicked.append(element)
                return True

        behavior = Claims()
        registry = BehaviorRegistry()
        registry.register(behavior)
        attach_selection_handlers(document, store, registry)

        click(document, page["div"])
        assert behavior.clicked == [page["div"]]
        assert store.state.selected_element is None

    def test_hover(self, document, store, page, attached):
        document.dispatch(MouseEvent("mousemove", target=page["div"]))
        assert store.state.hovered_element.element is page["div"]

        document.dispatch(MouseEvent("mousemove", target=page["outside"]))
        assert store.state.hovered_element is None

        document.dispatch(MouseEvent("mousemove", target=page["div"]))
        document.dispatch(MouseEvent("mouseleave"))
        assert store.state.hovered_element is None

    def test_detach_removes_listeners(self, document, store):
        detach = attach_selection_handlers(document, store, build_default_behaviors())
        detach_text = attach_text_edit_handlers(document, store, build_default_behaviors())
        assert document.listener_count() == 6
        detach()
        detach_text()
        assert document.listener_count() == 0


class TestTextEditing:

    def open_editor(self, document, store, heading):
        click(document, heading)
        return double_click(document, heading)

    def test_double_click_starts_editing(self, document, store, page, attached):
        heading = page["heading"]
        event = self.open_editor(document, store, heading)

        assert event.default_prevented
        assert heading.content_editable
        assert heading.dataset["alaraEditing"] == "true"
        assert document.active_element is heading
        assert document.selection.range.text == "Hello World"
        state = store.get_text_edit_state()
        assert state.is_editing
        assert state.original_text == "Hello World"
        assert state.oid == "src/App.tsx:3:7"

    def test_double_click_on_non_text_element(self, document, store, page, attached):
        double_click(document, page["div"])
        assert not store.state.text_edit.is_editing

    def test_enter_commits(self, document, store, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)
        heading.text_content = "Welcome"

        event = key(document, "Enter")

        assert event.default_prevented
        assert not heading.content_editable
        assert "alaraEditing" not in heading.dataset
        assert not store.state.text_edit.is_editing
        [message] = store.channel.sent
        assert message["change"] == {"originalText": "Hello World", "newText": "Welcome"}
        assert message["id"] in store.state.pending_edits

    def test_shift_enter_does_not_commit(self, document, store, page, attached):
        self.open_editor(document, store, page["heading"])
        key(document, "Enter", shift_key=True)
        assert store.state.text_edit.is_editing
        assert store.channel.sent == []

    def test_escape_restores(self, document, store, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)
        heading.text_content = "Oops"

        key(document, "Escape")

        assert heading.text_content == "Hello World"
        assert not heading.content_editable
        assert not store.state.text_edit.is_editing
        assert store.channel.sent == []

    def test_blur_commits_on_next_tick(self, document, store, scheduler, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)
        heading.text_content = "Welcome"

        page["div"].focus()
        assert store.state.text_edit.is_editing
        assert scheduler.delays == [0]

        scheduler.run_next()
        assert not store.state.text_edit.is_editing
        assert store.channel.sent[0]["change"]["newText"] == "Welcome"

    def test_escape_before_deferred_blur_wins(self, document, store, scheduler, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)
        heading.text_content = "Oops"

        page["div"].focus()
        key(document, "Escape")
        scheduler.run_all()

        assert heading.text_content == "Hello World"
        assert store.channel.sent == []

    def test_blur_into_descendant_keeps_editing(self, document, store, scheduler, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)

        document.dispatch(FocusEvent("focusout", target=heading, related_target=heading))
        assert scheduler.timers == []
        assert store.state.text_edit.is_editing

    def test_click_inside_editing_element_keeps_session(self, document, store, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)
        click(document, heading)
        assert store.state.text_edit.is_editing

    def test_click_elsewhere_cancels_session(self, document, store, page, attached):
        heading = page["heading"]
        self.open_editor(document, store, heading)
        heading.text_content = "Half typed"

        click(document, page["div"])

        assert not store.state.text_edit.is_editing
        assert heading.text_content == "Hello World"
        assert store.state.selected_element.element is page["div"]

    def test_no_hover_while_editing(self, document, store, page, attached):
        self.open_editor(document, store, page["heading"])
        document.dispatch(MouseEvent("mousemove", target=page["div"]))
        assert store.state.hovered_element is None
