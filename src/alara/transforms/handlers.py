"""
The built-in transform handlers and the default registry.
"""

from alara.schemas import (
    CssAddChange,
    CssAddRequest,
    CssRemoveChange,
    CssRemoveRequest,
    CssUpdateChange,
    CssUpdateRequest,
    TextUpdateChange,
    TextUpdateRequest,
    TransformResult,
    UndoData,
)
from .registry import TransformContext, TransformHandler, TransformRegistry, success_result


class TextUpdateHandler(TransformHandler):
    """Replace the text content of a markup element."""

    type = "text-update"
    schema = TextUpdateRequest

    def execute(self, request: TextUpdateRequest, context: TransformContext) -> TransformResult:
        change = request.change
        outcome = context.engine.update_text(
            request.target, change.original_text, change.new_text, request_id=request.id
        )

        # Text edits don't touch styles, so the undo target carries none
        undo_target = request.target.model_copy(update={"style_file": "", "selectors": ()})
        undo = UndoData(
            type="text-update",
            target=undo_target,
            revert_change=TextUpdateChange(
                original_text=change.new_text,
                new_text=change.original_text,
            ),
        )
        return success_result(request.id, outcome.affected_files, undo)


class CssUpdateHandler(TransformHandler):
    """Change the value of an existing declaration."""

    type = "css-update"
    schema = CssUpdateRequest

    def execute(self, request: CssUpdateRequest, context: TransformContext) -> TransformResult:
        change = request.change
        outcome = context.engine.update_style(
            request.target, change.property, change.prior_value, change.new_value, request_id=request.id
        )
        undo = UndoData(
            type="css-update",
            target=request.target,
            revert_change=CssUpdateChange(
                property=change.property,
                prior_value=change.new_value,
                new_value=change.prior_value,
            ),
        )
        return success_result(request.id, outcome.affected_files, undo)


class CssAddHandler(TransformHandler):
    """Add a declaration (overwriting one with the same property)."""

    type = "css-add"
    schema = CssAddRequest

    def execute(self, request: CssAddRequest, context: TransformContext) -> TransformResult:
        change = request.change
        outcome = context.engine.add_style(
            request.target,
            change.property,
            change.new_value,
            request_id=request.id,
            prior_value=change.prior_value,
        )

        if outcome.previous_value is None:
            undo = UndoData(
                type="css-remove",
                target=request.target,
                revert_change=CssRemoveChange(property=change.property, prior_value=change.new_value),
            )
        else:
            undo = UndoData(
                type="css-update",
                target=request.target,
                revert_change=CssUpdateChange(
                    property=change.property,
                    prior_value=change.new_value,
                    new_value=outcome.previous_value,
                ),
            )
        return success_result(request.id, outcome.affected_files, undo)


class CssRemoveHandler(TransformHandler):
    """Remove a declaration."""

    type = "css-remove"
    schema = CssRemoveRequest

    def execute(self, request: CssRemoveRequest, context: TransformContext) -> TransformResult:
        change = request.change
        outcome = context.engine.remove_style(
            request.target, change.property, change.prior_value, request_id=request.id
        )
        undo = UndoData(
            type="css-add",
            target=request.target,
            revert_change=CssAddChange(property=change.property, prior_value=None, new_value=change.prior_value),
        )
        return success_result(request.id, outcome.affected_files, undo)


DEFAULT_HANDLERS = (TextUpdateHandler, CssUpdateHandler, CssAddHandler, CssRemoveHandler)


def build_default_registry() -> TransformRegistry:
    """A registry with every built-in handler registered."""
    registry = TransformRegistry()
    for handler_class in DEFAULT_HANDLERS:
        registry.register(handler_class())
    return registry
