"""
docstore-cache — Cache Store Factory

Builds CacheStore instances from configuration and keeps a registry of them
by name. The factory owns the database handles it creates and closes them in
close_all_cache_stores(); stores themselves never tear down their connection.

Key points:
- Backend selected with CACHE_BACKEND=memory|mongo (mongo auto-selected when MONGO_URL is set)
- The mongo backend is imported lazily so pymongo is only needed when used
- All configuration is typed and validated via Pydantic models

Examples:
    from docstore_cache.cache.factory import create_cache_store

    # Uses env-configured backend (memory by default)
    store = create_cache_store()

    # Or explicitly supply a CacheStoreConfig (e.g., for tests)
    from docstore_cache.config import CacheStoreConfig, StoreBackend
    cfg = CacheStoreConfig(backend=StoreBackend.MEMORY, expires_in=600)
    store = create_cache_store(cfg, name="test")
"""

from __future__ import annotations

import logging

from ..config import CacheStoreConfig, StoreBackend, get_config
from ..errors import ConfigurationError
from .backends.memory import MemoryDatabase
from .interface import DatabaseInterface
from .store import CacheStore

logger = logging.getLogger(__name__)

# Global registries: store name -> store, store name -> database it owns
_store_instances: dict[str, CacheStore] = {}
_databases: dict[str, DatabaseInterface] = {}


def _create_memory_database(config: CacheStoreConfig) -> DatabaseInterface:
    """Internal helper to construct an in-process database."""
    return MemoryDatabase(name=config.database_name)


def _create_mongo_database(config: CacheStoreConfig) -> DatabaseInterface:
    """Internal helper to construct a MongoDB database handle with lazy import."""
    if not config.mongo_url:
        raise ConfigurationError(
            "MONGO_URL must be set when CACHE_BACKEND=mongo",
            details={"env": "MONGO_URL", "backend": "mongo"},
        )

    try:
        from .backends.mongo import MongoDatabase
    except ImportError as e:
        logger.error(
            "Mongo backend selected but pymongo is not installed",
            extra={"package": "pymongo>=4.10", "error": str(e)},
        )
        raise ConfigurationError(
            "Mongo backend selected but pymongo is unavailable. Install with: pip install 'pymongo>=4.10'",
            details={"package": "pymongo>=4.10", "error": str(e), "backend": "mongo"},
        ) from e

    return MongoDatabase.from_url(
        config.mongo_url,
        config.database_name,
        server_selection_timeout_ms=config.mongo_server_selection_timeout_ms,
        socket_timeout_ms=config.mongo_socket_timeout_ms,
    )


def create_cache_store(
    config: CacheStoreConfig | None = None,
    name: str = "default",
) -> CacheStore:
    """
    Create a cache store based on configuration.

    Returns the registered store if ``name`` already exists.

    Args:
        config: Store configuration (uses global config if not provided)
        name: Store instance name (for multiple caches in one process)

    Returns:
        Configured CacheStore

    Raises:
        ConfigurationError: If configuration is invalid or the backend unavailable
    """
    if name in _store_instances:
        logger.debug("Returning existing cache store: %s", name)
        return _store_instances[name]

    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache store '%s' with backend: %s",
        name,
        config.backend.value,
        extra={"store_name": name, "backend": config.backend.value},
    )

    if config.backend == StoreBackend.MEMORY:
        database = _create_memory_database(config)
    elif config.backend == StoreBackend.MONGO:
        database = _create_mongo_database(config)
    else:
        raise ConfigurationError(
            f"Unknown store backend: {config.backend}",
            details={"backend": str(config.backend), "supported": ["memory", "mongo"]},
        )

    store = CacheStore(database=database, config=config)
    _store_instances[name] = store
    _databases[name] = database

    logger.info(
        "Cache store '%s' created successfully",
        name,
        extra={"store_name": name, "collection": config.collection_name, "database": database.name},
    )
    return store


def get_cache_store(name: str = "default") -> CacheStore:
    """
    Get an existing cache store by name, creating it from global config if needed.
    """
    if name not in _store_instances:
        logger.debug("Cache store '%s' not found, creating new instance", name)
        return create_cache_store(name=name)

    return _store_instances[name]


async def close_all_cache_stores() -> None:
    """
    Close the database handles of every registered store and clear the registry.

    Call during graceful shutdown.
    """
    if not _store_instances:
        logger.debug("No cache stores to close")
        return

    logger.info("Closing %d cache store(s)...", len(_store_instances))

    for name, database in list(_databases.items()):
        try:
            await database.close()
            logger.info("Closed database for cache store: %s", name)
        except Exception as e:
            logger.error(
                "Error closing database for cache store '%s': %s",
                name,
                e,
                extra={"store_name": name, "error": str(e)},
                exc_info=True,
            )

    _store_instances.clear()
    _databases.clear()
    logger.info("All cache stores closed")


def reset_cache_factory() -> None:
    """
    Clear all store references without closing them.

    Warning: Only use this in testing contexts.
    """
    count = len(_store_instances)
    _store_instances.clear()
    _databases.clear()
    logger.debug("Reset cache factory, cleared %d store reference(s)", count)


def list_cache_stores() -> list[str]:
    """List all registered cache store names."""
    return list(_store_instances.keys())
