"""
docstore-cache — Cache Module

Key/value cache with per-entry expiration over a document store.

Exports:
- store.py: CacheStore, the public cache API
- interface.py: collection/database capability backends implement
- factory.py: configuration-driven construction and lifecycle of stores
- backends/: memory backend (always available) and MongoDB backend (lazy)

Usage:
    from docstore_cache.cache import create_cache_store

    store = create_cache_store()
    await store.write("key", "value", expires_in=3600)
    value = await store.read("key")
"""

from .backends.memory import MemoryCollection, MemoryDatabase
from .factory import (
    close_all_cache_stores,
    create_cache_store,
    get_cache_store,
    list_cache_stores,
    reset_cache_factory,
)
from .interface import CollectionInterface, DatabaseInterface
from .keys import expand_key, key_matcher, namespaced_key
from .store import ENTRY_INDEX, CacheStore, coerce_int

__all__ = [
    # Store
    "CacheStore",
    "ENTRY_INDEX",
    "coerce_int",
    # Factory functions
    "create_cache_store",
    "get_cache_store",
    "close_all_cache_stores",
    "list_cache_stores",
    "reset_cache_factory",
    # Interfaces
    "CollectionInterface",
    "DatabaseInterface",
    # Memory backend
    "MemoryCollection",
    "MemoryDatabase",
    # Keys
    "expand_key",
    "key_matcher",
    "namespaced_key",
]
