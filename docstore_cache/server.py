"""
docstore-cache — Server

FastMCP server using stdio transport (Model Context Protocol), exposing the
cache store operations as tools.

- Graceful shutdown closes every store's database handle
- Structured logging with trace IDs
- Configuration via typed Pydantic models only
"""

import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from . import __version__
from .cache import close_all_cache_stores, get_cache_store
from .config import load_config
from .observability import configure_logging, get_observability, initialize_observability
from .validation import (
    CacheClearInput,
    CacheDeleteInput,
    CacheDeleteMatchedInput,
    CacheExpireSweepInput,
    CacheIncrementInput,
    CacheReadInput,
    CacheWriteInput,
    CheckStatusInput,
    GetCacheStatsInput,
    validate_input,
)

logger = logging.getLogger(__name__)

_initialized = False


@asynccontextmanager
async def server_lifespan(server: Any) -> AsyncIterator[None]:
    """Server lifespan manager (startup/shutdown)."""
    await initialize_server()
    try:
        yield
    finally:
        await cleanup_server()


mcp = FastMCP("docstore-cache", lifespan=server_lifespan)


@mcp.tool()
@validate_input(CheckStatusInput)
async def check_status(include_details: bool = False) -> dict[str, Any]:
    """
    Check system health and status.

    Args:
        include_details: Include detailed cache and observability stats

    Returns:
        System status information
    """
    obs = get_observability()
    obs.increment("tools.check_status")

    store = get_cache_store()
    stats = await store.get_stats()

    status: dict[str, Any] = {
        "status": "healthy",
        "service": "docstore-cache",
        "version": __version__,
        "cache": {
            "backend": stats.get("backend"),
            "collection": stats.get("collection"),
            "hit_rate": stats.get("hit_rate", 0.0),
        },
    }

    if include_details:
        status["cache_details"] = stats
        status["observability"] = {
            "metrics_enabled": obs.enable_metrics,
            "tracing_enabled": obs.enable_tracing,
            "metrics": obs.get_metrics(),
        }

    return status


@mcp.tool()
@validate_input(GetCacheStatsInput)
async def get_cache_stats() -> dict[str, Any]:
    """
    Get detailed cache statistics.

    Returns:
        Hit/miss counters and store settings
    """
    get_observability().increment("tools.get_cache_stats")
    return await get_cache_store().get_stats()


@mcp.tool()
@validate_input(CacheReadInput)
async def cache_read(key: str, namespace: str | None = None) -> dict[str, Any]:
    """
    Read a value from the cache.

    Args:
        key: Cache key
        namespace: Namespace override for this call

    Returns:
        {"hit": bool, "value": value or None}
    """
    obs = get_observability()
    obs.increment("tools.cache_read")

    with obs.trace("cache.read", tags={"key": key}):
        value = await get_cache_store().read(key, namespace=namespace)

    obs.increment("cache.hits" if value is not None else "cache.misses")
    return {"hit": value is not None, "value": value}


@mcp.tool()
@validate_input(CacheWriteInput)
async def cache_write(
    key: str,
    value: Any,
    expires_in: float | None = None,
    namespace: str | None = None,
) -> dict[str, Any]:
    """
    Store a value in the cache.

    Args:
        key: Cache key
        value: Value to store
        expires_in: Seconds until expiry (default: store TTL)
        namespace: Namespace override for this call
    """
    obs = get_observability()
    obs.increment("tools.cache_write")

    with obs.trace("cache.write", tags={"key": key}):
        await get_cache_store().write(key, value, expires_in=expires_in, namespace=namespace)

    obs.increment("cache.writes")
    return {"success": True, "key": key}


@mcp.tool()
@validate_input(CacheDeleteInput)
async def cache_delete(key: str, namespace: str | None = None) -> dict[str, Any]:
    """
    Delete a key from the cache. Deleting a missing key is not an error.
    """
    obs = get_observability()
    obs.increment("tools.cache_delete")

    with obs.trace("cache.delete", tags={"key": key}):
        deleted = await get_cache_store().delete(key, namespace=namespace)

    return {"success": True, "deleted": deleted}


@mcp.tool()
@validate_input(CacheDeleteMatchedInput)
async def cache_delete_matched(
    pattern: str,
    regex: bool = False,
    ignore_case: bool = False,
    namespace: str | None = None,
) -> dict[str, Any]:
    """
    Delete every key matching a glob pattern (or a regex when regex=True).
    """
    obs = get_observability()
    obs.increment("tools.cache_delete_matched")

    matcher: str | re.Pattern[str] = pattern
    if regex:
        matcher = re.compile(pattern, re.IGNORECASE if ignore_case else 0)

    with obs.trace("cache.delete_matched", tags={"pattern": pattern}):
        deleted = await get_cache_store().delete_matched(matcher, namespace=namespace)

    return {"success": True, "deleted": deleted}


@mcp.tool()
@validate_input(CacheIncrementInput)
async def cache_increment(
    key: str,
    amount: int = 1,
    expires_in: float | None = None,
    namespace: str | None = None,
) -> dict[str, Any]:
    """
    Add to a counter. Not atomic; concurrent callers can lose updates.

    Returns:
        {"found": bool, "value": new value or None}
    """
    obs = get_observability()
    obs.increment("tools.cache_increment")

    with obs.trace("cache.increment", tags={"key": key}):
        value = await get_cache_store().increment(key, amount, expires_in=expires_in, namespace=namespace)

    return {"found": value is not None, "value": value}


@mcp.tool()
@validate_input(CacheIncrementInput)
async def cache_decrement(
    key: str,
    amount: int = 1,
    expires_in: float | None = None,
    namespace: str | None = None,
) -> dict[str, Any]:
    """
    Subtract from a counter. Not atomic; concurrent callers can lose updates.

    Returns:
        {"found": bool, "value": new value or None}
    """
    obs = get_observability()
    obs.increment("tools.cache_decrement")

    with obs.trace("cache.decrement", tags={"key": key}):
        value = await get_cache_store().decrement(key, amount, expires_in=expires_in, namespace=namespace)

    return {"found": value is not None, "value": value}


@mcp.tool()
@validate_input(CacheClearInput)
async def cache_clear() -> dict[str, Any]:
    """
    Remove every entry from the cache collection.
    """
    obs = get_observability()
    obs.increment("tools.cache_clear")

    with obs.trace("cache.clear"):
        deleted = await get_cache_store().clear()

    return {"success": True, "deleted": deleted}


@mcp.tool()
@validate_input(CacheExpireSweepInput)
async def cache_expire_sweep() -> dict[str, Any]:
    """
    Physically remove expired entries to reclaim space.
    """
    obs = get_observability()
    obs.increment("tools.cache_expire_sweep")

    with obs.trace("cache.expire_sweep"):
        deleted = await get_cache_store().expire_sweep()

    return {"success": True, "deleted": deleted}


async def initialize_server() -> None:
    """Initialize server resources on startup."""
    global _initialized

    if _initialized:
        return

    config = load_config()
    configure_logging(config.log_level, json_logs=config.observability.json_logs)
    logger.info(f"Configuration loaded: environment={config.environment}")

    obs = initialize_observability(
        enable_metrics=config.observability.enable_metrics,
        enable_tracing=config.observability.enable_tracing,
    )

    store = get_cache_store()
    stats = await store.get_stats()
    logger.info(f"Cache store initialized: backend={stats['backend']} collection={stats['collection']}")

    obs.increment("server.startup")
    obs.event(
        "server_started",
        {
            "environment": config.environment,
            "store_backend": config.cache.backend.value,
            "collection": config.cache.collection_name,
        },
    )
    _initialized = True


async def cleanup_server() -> None:
    """Cleanup server resources on shutdown."""
    global _initialized

    if not _initialized:
        return

    logger.info("Cleaning up docstore-cache server...")

    try:
        await close_all_cache_stores()
        obs = get_observability()
        obs.increment("server.shutdown")
        obs.event("server_stopped", {})
    except Exception as e:
        logger.error(f"Error during cleanup: {e}", exc_info=True)
    finally:
        _initialized = False


def main() -> None:
    """CLI entry point for the docstore-cache command."""
    mcp.run()


if __name__ == "__main__":
    main()
