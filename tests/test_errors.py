"""Tests for slidekit-html error codes and error model."""

from __future__ import annotations

import pytest

from slidekit_html.errors import (
    AssetError,
    ConversionError,
    ConversionException,
    ErrorCode,
)


@pytest.mark.unit
class TestErrorCode:
    """Test ErrorCode enum."""

    def test_name_equals_value(self):
        for code in ErrorCode:
            assert code.name == code.value

    def test_prefixes(self):
        for code in ErrorCode:
            assert code.value.startswith(("E_", "W_"))

    def test_string_enum(self):
        assert isinstance(ErrorCode.E_INPUT_NO_ROOT, str)
        assert ErrorCode.E_INPUT_NO_ROOT == "E_INPUT_NO_ROOT"

    def test_asset_codes_are_warnings(self):
        asset_codes = [code for code in ErrorCode if "ASSET" in code.name]
        assert asset_codes
        assert all(code.name.startswith("W_") for code in asset_codes)


@pytest.mark.unit
class TestConversionError:
    """Test the structured error model."""

    def test_defaults(self):
        error = ConversionError(code="W_ASSET_EMPTY", message="nothing")
        assert error.stage is None
        assert error.recoverable is False
        assert error.traversal_index is None
        assert error.tag is None

    def test_node_context(self):
        error = ConversionError(
            code=ErrorCode.W_ASSET_IMAGE_FAILED.value,
            message="decode failed",
            stage="enrich",
            recoverable=True,
            traversal_index=4.5,
            tag="IMG",
        )
        assert error.traversal_index == 4.5
        assert error.model_dump()["tag"] == "IMG"


@pytest.mark.unit
class TestExceptions:
    """Test exception wrappers."""

    def test_conversion_exception_carries_error(self):
        error = ConversionError(code="E_INPUT_NO_ROOT", message="No root node")
        exc = ConversionException(error)
        assert exc.error is error
        assert str(exc) == "No root node"

    def test_asset_error_carries_code(self):
        exc = AssetError(ErrorCode.W_ASSET_CANVAS_FAILED, "tainted canvas")
        assert exc.code == ErrorCode.W_ASSET_CANVAS_FAILED
        assert str(exc) == "tainted canvas"
