"""
docstore-cache — Document Store Cache

Key/value cache with per-entry expiration backed by a document store
(MongoDB or an in-process memory store), plus an MCP server exposing it.
"""

__version__ = "1.0.0"

from .cache import CacheStore, create_cache_store, get_cache_store
from .errors import (
    CacheConnectionError,
    CacheEncodingError,
    CacheError,
    CacheOperationError,
    ConfigurationError,
    DocstoreCacheError,
)

__all__ = [
    "__version__",
    "CacheStore",
    "create_cache_store",
    "get_cache_store",
    "DocstoreCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheEncodingError",
    "CacheConnectionError",
    "CacheOperationError",
]
