"""
docstore-cache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from docstore_cache.cache import CacheStore, MemoryCollection, MemoryDatabase

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


def is_mongo_available() -> bool:
    """Check if a MongoDB server is available for testing."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 27017))
        sock.close()
        return result == 0
    except OSError:
        return False


# Skip marker for Mongo tests
mongo_available = pytest.mark.skipif(not is_mongo_available(), reason="MongoDB server not available")


class FakeClock:
    """Controllable UTC clock for expiration tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingDatabase(MemoryDatabase):
    """MemoryDatabase that counts how often collections are opened."""

    def __init__(self, name: str = "rails_cache") -> None:
        super().__init__(name)
        self.opened: list[str] = []

    def get_collection(self, name: str) -> MemoryCollection:
        self.opened.append(name)
        return super().get_collection(name)


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at 2026-01-01T12:00:00Z."""
    return FakeClock()


@pytest.fixture
def database() -> RecordingDatabase:
    """A fresh in-memory database."""
    return RecordingDatabase()


@pytest.fixture
def store(database: RecordingDatabase, clock: FakeClock) -> CacheStore:
    """A cache store over the in-memory database with default settings."""
    return CacheStore(database=database, clock=clock)


@pytest.fixture
def test_mongo_url() -> str:
    """Get MongoDB URL for testing."""
    return os.environ.get("TEST_MONGO_URL", "mongodb://localhost:27017")


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory backend."""
    monkeypatch.delenv("MONGO_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_EXPIRES_IN", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")
    monkeypatch.setenv("CACHE_COLLECTION_NAME", "test_cache")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset factory, config and observability singletons after each test."""
    yield
    from docstore_cache.cache.factory import reset_cache_factory
    from docstore_cache.config import reset_config
    from docstore_cache.observability import reset_observability

    reset_cache_factory()
    reset_config()
    reset_observability()
