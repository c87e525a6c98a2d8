"""Error codes and structured error model for the slidekit-html package.

``ErrorCode`` contains all error/warning codes raised or recorded while
converting a node tree.  ``ConversionError`` is the structured Pydantic
record carried on :class:`~slidekit_html.models.ConversionResult`;
``ConversionException`` wraps one for the few conditions that abort a
conversion, and ``AssetError`` is raised inside deferred jobs.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for slide conversion.

    Each value equals its name so codes are stable strings suitable for
    metrics and alerting.  ``E_`` prefix indicates fatal errors;
    ``W_`` prefix indicates non-fatal warnings.
    """

    # Input errors
    E_INPUT_NO_ROOT = "E_INPUT_NO_ROOT"
    E_INPUT_INVALID_TREE = "E_INPUT_INVALID_TREE"

    # Builder errors
    E_BUILDER_FAILED = "E_BUILDER_FAILED"

    # Asset production (deferred jobs)
    W_ASSET_IMAGE_FAILED = "W_ASSET_IMAGE_FAILED"
    W_ASSET_CAPTURE_FAILED = "W_ASSET_CAPTURE_FAILED"
    W_ASSET_CANVAS_FAILED = "W_ASSET_CANVAS_FAILED"
    W_ASSET_SVG_FAILED = "W_ASSET_SVG_FAILED"
    W_ASSET_EMPTY = "W_ASSET_EMPTY"

    # Unsupported input (treated as absent)
    W_CHART_CONFIG_INVALID = "W_CHART_CONFIG_INVALID"
    W_CHART_UNTRANSLATED = "W_CHART_UNTRANSLATED"


class ConversionError(BaseModel):
    """Structured error with code, message, and node context.

    ``traversal_index`` and ``tag`` locate the node that produced the error
    in the source tree, analogous to a page number for paginated documents.
    """

    code: str
    message: str
    stage: str | None = None
    recoverable: bool = False
    traversal_index: float | None = None
    tag: str | None = None


class ConversionException(Exception):
    """Raised when a conversion cannot start or cannot be emitted."""

    def __init__(self, error: ConversionError) -> None:
        self.error = error
        super().__init__(error.message)


class AssetError(Exception):
    """Raised by a deferred job that could not produce image data."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        super().__init__(message)
