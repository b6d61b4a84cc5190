"""
docstore-cache — Input Validation Module

Provides Pydantic-based validation for all MCP tool inputs.
"""

from .decorators import validate_input
from .tool_schemas import (
    CacheClearInput,
    CacheDeleteInput,
    CacheDeleteMatchedInput,
    CacheExpireSweepInput,
    CacheIncrementInput,
    CacheReadInput,
    CacheWriteInput,
    CheckStatusInput,
    GetCacheStatsInput,
)

__all__ = [
    # Decorator
    "validate_input",
    # Tool input schemas
    "CacheReadInput",
    "CacheWriteInput",
    "CacheDeleteInput",
    "CacheDeleteMatchedInput",
    "CacheIncrementInput",
    "CacheClearInput",
    "CacheExpireSweepInput",
    "GetCacheStatsInput",
    "CheckStatusInput",
]
