"""
docstore-cache — Core Error Types

Defines the exception hierarchy for the cache store and its backends.
All exceptions inherit from DocstoreCacheError for consistent error handling.

Taxonomy:
- ConfigurationError for invalid construction options (raised before any store call)
- CacheEncodingError when a value cannot be represented by the backing store
- CacheConnectionError when the backing store is unreachable
- CacheOperationError for any other backing-store failure

A cache miss is never an error; reads return None.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for MCP tool responses.

    Used for structured error handling and client-side error recovery.
    """

    # Input validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Cache errors
    CACHE_FAILURE = "CACHE_FAILURE"
    CACHE_ENCODING = "CACHE_ENCODING"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DocstoreCacheError(Exception):
    """Base exception for all docstore-cache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DocstoreCacheError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheError(DocstoreCacheError):
    """Base exception for cache-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheEncodingError(CacheError):
    """Raised when a value cannot be encoded by the backing document store."""

    def __init__(self, value_type: str, details: dict[str, Any] | None = None):
        message = f"Value of type '{value_type}' cannot be encoded by the document store"
        error_details = details or {}
        error_details.setdefault("value_type", value_type)
        super().__init__(message, error_details)
        self.value_type = value_type


class CacheConnectionError(CacheError):
    """Raised when cache backend connection fails."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)
        self.status_code = 503


class CacheOperationError(CacheError):
    """Raised when cache operation fails."""

    pass


def make_error_response(
    error_code: ErrorCode,
    message: str,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a standardized error response for MCP tools.

    Args:
        error_code: Standard error code
        message: Human-readable error message
        context: Additional context/details

    Returns:
        Standardized error response dictionary

    Example:
        >>> make_error_response(
        ...     ErrorCode.INVALID_INPUT,
        ...     "Key parameter is required",
        ...     {"parameter": "key", "provided_value": None}
        ... )
        {
            "success": False,
            "error_code": "INVALID_INPUT",
            "message": "Key parameter is required",
            "details": {"parameter": "key", "provided_value": None}
        }
    """
    return {
        "success": False,
        "error_code": error_code.value,
        "message": message,
        "details": context or {},
    }


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, CacheEncodingError):
        return ErrorCode.CACHE_ENCODING

    if isinstance(error, CacheConnectionError):
        return ErrorCode.CACHE_UNAVAILABLE

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    return ErrorCode.INTERNAL_ERROR
