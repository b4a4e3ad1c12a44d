"""
TransformRegistry: validate inbound transform requests and dispatch them.

Nothing raised by a handler escapes execute(); every outcome is a
TransformResult.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from alara.exceptions import DuplicateHandlerError, TransformFailure
from alara.logging_config import logger
from alara.mutation.facade import MutationEngine
from alara.schemas import ErrorCode, TransformResult, UndoData, create_transform_result, failure_result


@dataclass
class TransformContext:
    """Per-server state handed to every handler."""
    project_dir: Path
    engine: MutationEngine


class TransformHandler:
    """
    Base class for transform handlers.

    Subclasses set `type` and `schema` and implement execute().
    """

    type: str = ""
    schema: Type[BaseModel] = BaseModel

    def execute(self, request: BaseModel, context: TransformContext) -> TransformResult:
        raise NotImplementedError


def success_result(
    request_id: str,
    affected_files: List[str],
    undo_data: Optional[UndoData] = None,
) -> TransformResult:
    return create_transform_result(request_id, True, affected_files=affected_files, undo_data=undo_data)


def _validation_details(error: ValidationError) -> Dict[str, Any]:
    return {"errors": json.loads(error.json(include_url=False))}


class TransformRegistry:
    """
    Maps transform type names to handlers.

    Registration happens explicitly at startup; a second handler for the
    same type is an error.
    """

    def __init__(self):
        self._handlers: Dict[str, TransformHandler] = {}

    def register(self, handler: TransformHandler) -> None:
        """
        Register a handler.

        Raises:
            DuplicateHandlerError: a handler for this type already exists
        """
        if handler.type in self._handlers:
            raise DuplicateHandlerError(handler.type)
        self._handlers[handler.type] = handler
        logger.debug(f"Registered transform handler: {handler.type}")

    def get_handler(self, transform_type: str) -> Optional[TransformHandler]:
        return self._handlers.get(transform_type)

    def has_handler(self, transform_type: str) -> bool:
        return transform_type in self._handlers

    def get_types(self) -> List[str]:
        return list(self._handlers)

    def execute(self, transform_type: str, raw_request: Any, context: TransformContext) -> TransformResult:
        """
        Validate and run a transform request.

        Args:
            transform_type: Declared transform type
            raw_request: Unvalidated request data
            context: Handler context

        Returns:
            TransformResult (never raises)
        """
        request_id = ""
        if isinstance(raw_request, dict) and isinstance(raw_request.get("id"), str):
            request_id = raw_request["id"]

        handler = self._handlers.get(transform_type)
        if handler is None:
            return failure_result(
                request_id,
                ErrorCode.VALIDATION_ERROR,
                f"Unknown transform type: {transform_type}",
            )

        try:
            request = handler.schema.model_validate(raw_request)
        except ValidationError as e:
            logger.warning(f"Invalid {transform_type} request {request_id}: {e.error_count()} error(s)")
            return failure_result(
                request_id,
                ErrorCode.VALIDATION_ERROR,
                f"Invalid request: {e}",
                _validation_details(e),
            )

        try:
            return handler.execute(request, context)
        except TransformFailure as e:
            logger.warning(f"{transform_type} {request_id} failed: [{e.code}] {e.message}")
            return failure_result(request_id, e.code, e.message, e.details)
        except Exception as e:
            logger.exception(f"Unexpected error in {transform_type} handler")
            return failure_result(
                request_id,
                ErrorCode.INTERNAL_ERROR,
                f"Transform failed: {e}",
            )
