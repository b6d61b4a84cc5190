"""
docstore-cache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    DEFAULT_COLLECTION_NAME,
    DEFAULT_DATABASE_NAME,
    DEFAULT_EXPIRES_IN,
    CacheStoreConfig,
    DocstoreCacheConfig,
    Environment,
    LogLevel,
    ObservabilityConfig,
    StoreBackend,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "DocstoreCacheConfig",
    # Enums
    "Environment",
    "StoreBackend",
    "LogLevel",
    # Config sections
    "CacheStoreConfig",
    "ObservabilityConfig",
    # Defaults
    "DEFAULT_COLLECTION_NAME",
    "DEFAULT_DATABASE_NAME",
    "DEFAULT_EXPIRES_IN",
]
