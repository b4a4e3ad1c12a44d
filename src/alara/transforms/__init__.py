"""
Transform protocol: request validation, handler dispatch and result envelopes.
"""

from .registry import TransformContext, TransformHandler, TransformRegistry, success_result
from .handlers import (
    TextUpdateHandler,
    CssUpdateHandler,
    CssAddHandler,
    CssRemoveHandler,
    build_default_registry,
)

__all__ = [
    "TransformContext",
    "TransformHandler",
    "TransformRegistry",
    "success_result",
    "TextUpdateHandler",
    "CssUpdateHandler",
    "CssAddHandler",
    "CssRemoveHandler",
    "build_default_registry",
]
