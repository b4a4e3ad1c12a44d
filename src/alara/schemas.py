"""
Wire schemas for transforms.

Field names are snake_case in Python and camelCase on the wire. Older
clients send ``cssFile``/``computedValue``; both are accepted on input and
``styleFile``/``priorValue`` are emitted.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    AliasChoices,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)
from typing_extensions import Annotated

from alara.styles.values import StyleValue, WireModel


TRANSFORM_TYPES = ("css-update", "css-add", "css-remove", "text-update")
TransformType = Literal["css-update", "css-add", "css-remove", "text-update"]


class ErrorCode:
    """Error codes carried by failed transform results."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    SELECTOR_NOT_FOUND = "SELECTOR_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PARSE_ERROR = "PARSE_ERROR"
    WRITE_ERROR = "WRITE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_CODES = (
    "SELECTOR_NOT_FOUND",
    "FILE_NOT_FOUND",
    "PARSE_ERROR",
    "VALIDATION_ERROR",
    "WRITE_ERROR",
    "ELEMENT_NOT_FOUND",
    "INTERNAL_ERROR",
)
ErrorCodeName = Literal[
    "SELECTOR_NOT_FOUND",
    "FILE_NOT_FOUND",
    "PARSE_ERROR",
    "VALIDATION_ERROR",
    "WRITE_ERROR",
    "ELEMENT_NOT_FOUND",
    "INTERNAL_ERROR",
]


# ============================================================================
# Locator
# ============================================================================

class SourceLocator(WireModel):
    """
    Where an element came from: markup position plus its style rule.

    Produced at build time; used only as a lookup key.
    """
    file: str = Field(min_length=1)
    line_number: int = Field(gt=0, alias="lineNumber")
    column: int = Field(gt=0)
    style_file: str = Field(
        default="",
        validation_alias=AliasChoices("styleFile", "cssFile", "style_file"),
        serialization_alias="styleFile",
    )
    selectors: Tuple[str, ...] = ()


# ============================================================================
# Changes
# ============================================================================

_PRIOR_VALUE_ALIASES = AliasChoices("priorValue", "computedValue", "prior_value")


class CssUpdateChange(WireModel):
    property: str = Field(min_length=1)
    prior_value: StyleValue = Field(
        validation_alias=_PRIOR_VALUE_ALIASES, serialization_alias="priorValue"
    )
    new_value: StyleValue = Field(alias="newValue")


class CssAddChange(WireModel):
    property: str = Field(min_length=1)
    prior_value: Optional[StyleValue] = Field(
        default=None, validation_alias=_PRIOR_VALUE_ALIASES, serialization_alias="priorValue"
    )
    new_value: StyleValue = Field(alias="newValue")

    @model_serializer(mode="wrap")
    def _keep_null_prior_value(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> Dict[str, Any]:
        # priorValue is explicitly null for an add, also when nested in a result
        data = handler(self)
        data.setdefault("priorValue" if info.by_alias else "prior_value", None)
        return data


class CssRemoveChange(WireModel):
    property: str = Field(min_length=1)
    prior_value: StyleValue = Field(
        validation_alias=_PRIOR_VALUE_ALIASES, serialization_alias="priorValue"
    )


class TextUpdateChange(WireModel):
    original_text: str = Field(alias="originalText")
    new_text: str = Field(alias="newText")


TransformChange = Union[CssUpdateChange, CssAddChange, CssRemoveChange, TextUpdateChange]

CHANGE_MODELS = {
    "css-update": CssUpdateChange,
    "css-add": CssAddChange,
    "css-remove": CssRemoveChange,
    "text-update": TextUpdateChange,
}


# ============================================================================
# Requests
# ============================================================================

class CssUpdateRequest(WireModel):
    id: str = Field(min_length=1)
    type: Literal["css-update"] = "css-update"
    target: SourceLocator
    change: CssUpdateChange


class CssAddRequest(WireModel):
    id: str = Field(min_length=1)
    type: Literal["css-add"] = "css-add"
    target: SourceLocator
    change: CssAddChange


class CssRemoveRequest(WireModel):
    id: str = Field(min_length=1)
    type: Literal["css-remove"] = "css-remove"
    target: SourceLocator
    change: CssRemoveChange


class TextUpdateRequest(WireModel):
    id: str = Field(min_length=1)
    type: Literal["text-update"] = "text-update"
    target: SourceLocator
    change: TextUpdateChange


TransformRequest = Annotated[
    Union[CssUpdateRequest, CssAddRequest, CssRemoveRequest, TextUpdateRequest],
    Field(discriminator="type"),
]

REQUEST_MODELS = {
    "css-update": CssUpdateRequest,
    "css-add": CssAddRequest,
    "css-remove": CssRemoveRequest,
    "text-update": TextUpdateRequest,
}


# ============================================================================
# Results
# ============================================================================

class TransformError(WireModel):
    code: ErrorCodeName
    message: str
    details: Optional[Dict[str, Any]] = None


class UndoData(WireModel):
    """Everything needed to revert an applied transform."""
    type: TransformType
    target: SourceLocator
    revert_change: TransformChange = Field(alias="revertChange")

    @model_validator(mode="before")
    @classmethod
    def _typed_revert_change(cls, data):
        # The change shapes overlap, so pick the model from the transform type
        if isinstance(data, dict):
            change = data.get("revertChange", data.get("revert_change"))
            model = CHANGE_MODELS.get(data.get("type"))
            if model is not None and isinstance(change, dict):
                data = dict(data)
                data.pop("revert_change", None)
                data["revertChange"] = model.model_validate(change)
        return data


class TransformResult(WireModel):
    success: bool
    request_id: str = Field(alias="requestId")
    affected_files: Optional[List[str]] = Field(default=None, alias="affectedFiles")
    error: Optional[TransformError] = None
    undo_data: Optional[UndoData] = Field(default=None, alias="undoData")

    @model_validator(mode="after")
    def _success_lists_files(self):
        if self.success and self.affected_files is None:
            raise ValueError("successful results must list affectedFiles")
        return self


# ============================================================================
# Factories
# ============================================================================

def create_transform_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> TransformError:
    return TransformError(code=code, message=message, details=details)


def create_transform_result(
    request_id: str,
    success: bool,
    affected_files: Optional[List[str]] = None,
    error: Optional[TransformError] = None,
    undo_data: Optional[UndoData] = None,
) -> TransformResult:
    return TransformResult(
        success=success,
        request_id=request_id,
        affected_files=affected_files,
        error=error,
        undo_data=undo_data,
    )


def failure_result(
    request_id: str,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> TransformResult:
    """Shorthand for a failed result."""
    return create_transform_result(
        request_id, False, error=create_transform_error(code, message, details)
    )
