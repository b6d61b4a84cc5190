"""
docstore-cache — Tool Input Validation Schemas

Pydantic models for validating all MCP tool inputs.

- Strict type validation
- Field constraints (min/max lengths, value ranges)
- Default values where appropriate
"""

import re
from typing import Any

from pydantic import BaseModel, Field, model_validator

_MAX_KEY_LENGTH = 1000
_MAX_TTL_SECONDS = 86400 * 365


class CacheReadInput(BaseModel):
    """Input validation for cache_read tool."""

    key: str = Field(
        ...,
        min_length=1,
        max_length=_MAX_KEY_LENGTH,
        description="Cache key to read (1-1000 characters)",
    )
    namespace: str | None = Field(default=None, description="Namespace override for this call")


class CacheWriteInput(BaseModel):
    """Input validation for cache_write tool."""

    key: str = Field(
        ...,
        min_length=1,
        max_length=_MAX_KEY_LENGTH,
        description="Cache key (1-1000 characters)",
    )
    value: Any = Field(
        ...,
        description="Value to store",
    )
    expires_in: float | None = Field(
        default=None,
        gt=0,
        le=_MAX_TTL_SECONDS,
        description="Seconds until the entry expires (None = store default)",
    )
    namespace: str | None = Field(default=None, description="Namespace override for this call")


class CacheDeleteInput(BaseModel):
    """Input validation for cache_delete tool."""

    key: str = Field(
        ...,
        min_length=1,
        max_length=_MAX_KEY_LENGTH,
        description="Cache key to delete (1-1000 characters)",
    )
    namespace: str | None = Field(default=None, description="Namespace override for this call")


class CacheDeleteMatchedInput(BaseModel):
    """Input validation for cache_delete_matched tool."""

    pattern: str = Field(
        ...,
        min_length=1,
        max_length=_MAX_KEY_LENGTH,
        description="Glob pattern (e.g. 'user:*'), or a regular expression when regex=True",
    )
    regex: bool = Field(default=False, description="Interpret pattern as a regular expression")
    ignore_case: bool = Field(default=False, description="Case-insensitive regex match")
    namespace: str | None = Field(default=None, description="Namespace override for this call")

    @model_validator(mode="after")
    def validate_regex(self) -> "CacheDeleteMatchedInput":
        """Reject regex patterns that do not compile."""
        if self.regex:
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"Invalid regular expression: {e}") from e
        return self


class CacheIncrementInput(BaseModel):
    """Input validation for cache_increment and cache_decrement tools."""

    key: str = Field(
        ...,
        min_length=1,
        max_length=_MAX_KEY_LENGTH,
        description="Counter key (1-1000 characters)",
    )
    amount: int = Field(default=1, description="Amount to add or subtract")
    expires_in: float | None = Field(
        default=None,
        gt=0,
        le=_MAX_TTL_SECONDS,
        description="Seconds until the rewritten entry expires (None = store default)",
    )
    namespace: str | None = Field(default=None, description="Namespace override for this call")


class CacheClearInput(BaseModel):
    """Input validation for cache_clear tool (no parameters)."""

    pass


class CacheExpireSweepInput(BaseModel):
    """Input validation for cache_expire_sweep tool (no parameters)."""

    pass


class GetCacheStatsInput(BaseModel):
    """Input validation for get_cache_stats tool (no parameters)."""

    pass


class CheckStatusInput(BaseModel):
    """Input validation for check_status tool."""

    include_details: bool = Field(
        default=False,
        description="Include detailed cache and observability stats",
    )
