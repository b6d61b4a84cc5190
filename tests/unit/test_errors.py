"""
docstore-cache — Error Type Tests
"""

import pytest

from docstore_cache.errors import (
    CacheConnectionError,
    CacheEncodingError,
    CacheError,
    CacheOperationError,
    ConfigurationError,
    DocstoreCacheError,
    ErrorCode,
    extract_error_code,
    make_error_response,
)


class TestErrorTypes:
    """Test the exception hierarchy."""

    def test_encoding_error(self) -> None:
        error = CacheEncodingError("Widget", details={"path": "value"})

        assert isinstance(error, CacheError)
        assert error.value_type == "Widget"
        assert error.details == {"path": "value", "value_type": "Widget"}
        assert "Widget" in error.message

    def test_connection_error_status(self) -> None:
        error = CacheConnectionError("mongo")
        assert error.status_code == 503
        assert "mongo" in str(error)

    def test_to_dict(self) -> None:
        error = CacheOperationError("write failed", details={"operation": "upsert"})
        assert error.to_dict() == {
            "error": "CacheOperationError",
            "message": "write failed",
            "details": {"operation": "upsert"},
        }

    def test_all_derive_from_base(self) -> None:
        for error in (ConfigurationError("x"), CacheError("x"), CacheEncodingError("int"), CacheOperationError("x")):
            assert isinstance(error, DocstoreCacheError)


class TestErrorResponses:
    """Test tool error response helpers."""

    def test_make_error_response(self) -> None:
        response = make_error_response(ErrorCode.CACHE_FAILURE, "failed", {"key": "k"})
        assert response == {
            "success": False,
            "error_code": "CACHE_FAILURE",
            "message": "failed",
            "details": {"key": "k"},
        }

    def test_make_error_response_without_context(self) -> None:
        assert make_error_response(ErrorCode.INTERNAL_ERROR, "x")["details"] == {}

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (CacheEncodingError("int"), ErrorCode.CACHE_ENCODING),
            (CacheConnectionError("mongo"), ErrorCode.CACHE_UNAVAILABLE),
            (CacheOperationError("x"), ErrorCode.CACHE_FAILURE),
            (ConfigurationError("x"), ErrorCode.CONFIGURATION_ERROR),
            (RuntimeError("x"), ErrorCode.INTERNAL_ERROR),
        ],
    )
    def test_extract_error_code(self, error: Exception, expected: ErrorCode) -> None:
        assert extract_error_code(error) == expected
