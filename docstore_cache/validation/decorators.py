"""
docstore-cache — Validation Decorators

Provides decorators for applying Pydantic validation to MCP tools.

- validate_input decorator for automatic input validation
- Structured error responses with ErrorCode
- Cache errors raised by the tool are turned into error responses too
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from ..errors import DocstoreCacheError, ErrorCode, extract_error_code, make_error_response
from ..observability import get_observability

logger = logging.getLogger(__name__)


def _validation_errors(error: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in error.errors()
    ]


def validate_input(
    schema: type[BaseModel],
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """
    Decorator to validate async tool inputs using a Pydantic schema.

    Args:
        schema: Pydantic model class for input validation

    Returns:
        Decorated coroutine function with automatic validation

    Example:
        >>> @validate_input(CacheReadInput)
        ... async def cache_read(key: str, namespace: str | None = None):
        ...     ...

    Error Response:
        {
            "success": False,
            "error_code": "INVALID_INPUT",
            "message": "Input validation failed",
            "details": {
                "validation_errors": [
                    {
                        "field": "key",
                        "message": "String should have at least 1 character",
                        "type": "string_too_short"
                    }
                ]
            }
        }
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            obs = get_observability()

            try:
                validated = schema(**kwargs)
            except ValidationError as e:
                validation_errors = _validation_errors(e)

                logger.warning(
                    f"Input validation failed for {func.__name__}",
                    extra={
                        "function": func.__name__,
                        "validation_errors": validation_errors,
                    },
                )
                obs.increment(
                    "validation.failed",
                    tags={
                        "function": func.__name__,
                        "error_count": str(len(validation_errors)),
                    },
                )
                return make_error_response(
                    error_code=ErrorCode.INVALID_INPUT,
                    message="Input validation failed",
                    context={
                        "validation_errors": validation_errors,
                        "function": func.__name__,
                    },
                )

            try:
                return await func(*args, **validated.model_dump(exclude_unset=False))
            except DocstoreCacheError as e:
                logger.error(
                    f"{func.__name__} failed: {e.message}",
                    extra={"function": func.__name__, "error_type": type(e).__name__, "details": e.details},
                )
                obs.increment("tools.error", tags={"function": func.__name__, "error_type": type(e).__name__})
                return make_error_response(
                    error_code=extract_error_code(e),
                    message=e.message,
                    context={"function": func.__name__, **e.details},
                )
            except Exception as e:
                logger.error(
                    f"Unexpected error in {func.__name__}: {e}",
                    extra={
                        "function": func.__name__,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                obs.increment("tools.error", tags={"function": func.__name__, "error_type": type(e).__name__})
                return make_error_response(
                    error_code=ErrorCode.INTERNAL_ERROR,
                    message=f"Unexpected error: {e}",
                    context={"function": func.__name__},
                )

        return wrapper

    return decorator
