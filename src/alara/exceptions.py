# Custom exceptions for Alara

from typing import Any, Dict, Optional


class AlaraError(Exception):
    """Base exception for all application-specific errors."""
    pass


class ConfigError(AlaraError):
    """Raised for configuration-related problems."""
    pass


class LocatorError(AlaraError):
    """Raised when a source locator string cannot be parsed."""
    def __init__(self, locator: str, message: str):
        self.locator = locator
        self.message = message
        super().__init__(f"Invalid locator '{locator}': {message}")


class TransformFailure(AlaraError):
    """
    Raised inside the mutation layer when a transform cannot be applied.

    Carries one of the transform error codes so the registry can turn it
    into a structured failure result.
    """
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class DuplicateHandlerError(AlaraError):
    """Raised when two transform handlers claim the same type."""
    def __init__(self, transform_type: str):
        self.transform_type = transform_type
        super().__init__(f"A handler for transform type '{transform_type}' is already registered")


class DuplicateBehaviorError(AlaraError):
    """Raised when two editor behaviors share an id."""
    def __init__(self, behavior_id: str):
        self.behavior_id = behavior_id
        super().__init__(f"Editor behavior '{behavior_id}' is already registered")
