"""
docstore-cache — MCP Server Tool Tests

Runs the server lifecycle against the memory backend and calls each tool the
way the MCP runtime does, checking the response dictionaries.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest

from docstore_cache import server
from docstore_cache.cache import get_cache_store, list_cache_stores
from docstore_cache.config import reload_config
from docstore_cache.observability import get_observability


def _call(tool: Any) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Return the coroutine function behind a registered tool."""
    return getattr(tool, "fn", tool)


@pytest.fixture
async def running_server(mock_env_memory: None) -> AsyncGenerator[None, None]:
    """Initialize the server on the memory backend and shut it down afterwards."""
    reload_config(env_file="/nonexistent/.env")
    await server.initialize_server()
    yield
    await server.cleanup_server()

    # initialize_server installs its own handler; hand logging back to pytest
    package_logger = logging.getLogger("docstore_cache")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.mark.usefixtures("running_server")
class TestServerTools:
    """Test suite for the cache tools."""

    async def test_check_status(self) -> None:
        result = await _call(server.check_status)()

        assert result["status"] == "healthy"
        assert result["service"] == "docstore-cache"
        assert result["cache"]["backend"] == "memory"
        assert result["cache"]["collection"] == "test_cache"
        assert "cache_details" not in result

    async def test_check_status_details(self) -> None:
        result = await _call(server.check_status)(include_details=True)

        assert result["cache_details"]["namespace"] == "test"
        assert result["observability"]["metrics_enabled"] is True

    async def test_write_then_read(self) -> None:
        written = await _call(server.cache_write)(key="greeting", value={"text": "hello"})
        assert written == {"success": True, "key": "greeting"}

        result = await _call(server.cache_read)(key="greeting")
        assert result == {"hit": True, "value": {"text": "hello"}}

    async def test_read_miss(self) -> None:
        assert await _call(server.cache_read)(key="missing") == {"hit": False, "value": None}

    async def test_write_uses_configured_namespace(self) -> None:
        await _call(server.cache_write)(key="k", value=1)

        assert await get_cache_store().read("k", namespace="test") == 1
        assert await get_cache_store().read("k", namespace="other") is None

    async def test_write_rejects_empty_key(self) -> None:
        result = await _call(server.cache_write)(key="", value=1)

        assert result["success"] is False
        assert result["error_code"] == "INVALID_INPUT"

    async def test_delete(self) -> None:
        await _call(server.cache_write)(key="k", value="v")

        assert await _call(server.cache_delete)(key="k") == {"success": True, "deleted": True}
        assert await _call(server.cache_delete)(key="k") == {"success": True, "deleted": False}
        assert (await _call(server.cache_read)(key="k"))["hit"] is False

    async def test_increment_and_decrement(self) -> None:
        await _call(server.cache_write)(key="ctr", value="10")

        assert await _call(server.cache_increment)(key="ctr", amount=5) == {"found": True, "value": 15}
        assert await _call(server.cache_decrement)(key="ctr", amount=3) == {"found": True, "value": 12}
        assert await _call(server.cache_decrement)(key="ctr") == {"found": True, "value": 11}
        assert (await _call(server.cache_read)(key="ctr"))["value"] == 11

    async def test_increment_absent_key(self) -> None:
        assert await _call(server.cache_increment)(key="absent") == {"found": False, "value": None}
        assert (await _call(server.cache_read)(key="absent"))["hit"] is False

    async def test_delete_matched_glob(self) -> None:
        for key in ("user:1", "user:2", "post:1"):
            await _call(server.cache_write)(key=key, value=key)

        result = await _call(server.cache_delete_matched)(pattern="user:*")

        assert result == {"success": True, "deleted": 2}
        assert (await _call(server.cache_read)(key="post:1"))["hit"] is True

    async def test_delete_matched_regex_ignore_case(self) -> None:
        for key in ("A:1", "a:2", "b:1"):
            await _call(server.cache_write)(key=key, value=key)

        result = await _call(server.cache_delete_matched)(pattern="^a:", regex=True, ignore_case=True)

        assert result == {"success": True, "deleted": 2}
        assert (await _call(server.cache_read)(key="A:1"))["hit"] is False
        assert (await _call(server.cache_read)(key="b:1"))["hit"] is True

    async def test_delete_matched_regex_is_case_sensitive_by_default(self) -> None:
        await _call(server.cache_write)(key="A:1", value=1)

        result = await _call(server.cache_delete_matched)(pattern="^a:", regex=True)

        assert result["deleted"] == 0

    async def test_delete_matched_invalid_regex(self) -> None:
        result = await _call(server.cache_delete_matched)(pattern="user:[", regex=True)

        assert result["success"] is False
        assert result["error_code"] == "INVALID_INPUT"

    async def test_clear(self) -> None:
        await _call(server.cache_write)(key="a", value=1)
        await _call(server.cache_write)(key="b", value=2)

        assert await _call(server.cache_clear)() == {"success": True, "deleted": 2}
        assert (await _call(server.cache_read)(key="a"))["hit"] is False

    async def test_expire_sweep(self) -> None:
        await _call(server.cache_write)(key="short", value=1, expires_in=0.001)
        await _call(server.cache_write)(key="long", value=2)
        await asyncio.sleep(0.05)

        assert await _call(server.cache_expire_sweep)() == {"success": True, "deleted": 1}
        assert (await _call(server.cache_read)(key="long"))["hit"] is True

    async def test_get_cache_stats(self) -> None:
        await _call(server.cache_write)(key="k", value="v")
        await _call(server.cache_read)(key="k")
        await _call(server.cache_read)(key="missing")

        stats = await _call(server.get_cache_stats)()

        assert stats["backend"] == "memory"
        assert stats["writes"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["default_expires_in"] == 3600

    async def test_tool_calls_counted(self) -> None:
        await _call(server.cache_read)(key="k")

        counters = get_observability().get_metrics()["counters"]
        assert counters["tools.cache_read"] == 1
        assert counters["server.startup"] == 1


class TestServerLifecycle:
    """Test initialize_server / cleanup_server."""

    async def test_initialize_is_idempotent(self, running_server: None) -> None:
        store = get_cache_store()

        await server.initialize_server()

        assert get_cache_store() is store
        assert get_observability().get_metrics()["counters"]["server.startup"] == 1

    async def test_cleanup_closes_stores(self, running_server: None) -> None:
        assert list_cache_stores() == ["default"]

        await server.cleanup_server()

        assert list_cache_stores() == []
        assert server._initialized is False
