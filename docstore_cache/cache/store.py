"""
docstore-cache — Cache Store

Key/value cache with per-entry expiration, persisted in a document collection.

Each entry is one document ``{"_id": key, "value": value, "expires": datetime}``.

Consistency model:
- Writes are upserts: rewriting a key overwrites its document in place, so
  storage only grows with the number of distinct keys.
- Expiration is checked at read time by the query itself; expired documents
  stay on disk until ``delete``, ``delete_matched``, ``clear`` or
  ``expire_sweep`` removes them, but are never returned.
- ``increment``/``decrement`` read then write. They are NOT atomic:
  concurrent callers on the same key can lose updates. Callers that need
  exact counters must not use them.

Example:
    store = CacheStore(database=MemoryDatabase(), namespace="app")
    await store.write("greeting", "hello", expires_in=60)
    value = await store.read("greeting")
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from ..config.schemas import CacheStoreConfig
from ..errors import CacheEncodingError, ConfigurationError
from .interface import CollectionInterface, DatabaseInterface
from .keys import key_matcher, namespaced_key

logger = logging.getLogger(__name__)

# _id ascending, expires descending: serves both the read filter and the sweep
ENTRY_INDEX: list[tuple[str, int]] = [("_id", 1), ("expires", -1)]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

Clock = Callable[[], datetime]
ExpiresIn = int | float | timedelta | None


def coerce_int(value: Any) -> int:
    """
    Parse a stored counter value into an integer.

    ints (and bools) pass through, floats truncate toward zero, strings and
    bytes use their leading integer (``"12abc"`` -> 12). Anything without a
    leading integer, or of another type, counts as 0.
    """
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CacheStore:
    """
    Document-store backed cache.

    Args:
        collection: A ready :class:`CollectionInterface` (used as-is, no index
            creation), a collection name, or None for the configured name.
        database: Connection provider used to open the collection lazily.
            Required unless a collection instance is given.
        config: Store configuration; defaults to ``CacheStoreConfig()``.
        clock: Returns the current aware UTC datetime.
        **overrides: Individual ``CacheStoreConfig`` fields, e.g.
            ``expires_in=300`` or ``namespace="app"``.

    Raises:
        ConfigurationError: On an unsupported collection reference, a missing
            database, or invalid configuration values.
    """

    def __init__(
        self,
        collection: CollectionInterface | str | None = None,
        *,
        database: DatabaseInterface | None = None,
        config: CacheStoreConfig | None = None,
        clock: Clock | None = None,
        **overrides: Any,
    ) -> None:
        self._collection: CollectionInterface | None = None

        if isinstance(collection, CollectionInterface):
            self._collection = collection
        elif isinstance(collection, str):
            overrides["collection_name"] = collection
        elif collection is not None:
            raise ConfigurationError(
                "CacheStore collection must be a CollectionInterface, a collection name, or None",
                details={"collection_type": type(collection).__name__},
            )

        if database is not None and not isinstance(database, DatabaseInterface):
            raise ConfigurationError(
                "CacheStore database must implement DatabaseInterface",
                details={"database_type": type(database).__name__},
            )

        if self._collection is None and database is None:
            raise ConfigurationError(
                "CacheStore needs either a collection instance or a database to open one from",
                details={"collection_name": overrides.get("collection_name")},
            )

        self.config = self._build_config(config, overrides)
        self._database = database
        self._clock: Clock = clock or _utcnow
        self._init_lock = asyncio.Lock()

        # Stats
        self._hits = 0
        self._misses = 0
        self._writes = 0
        self._deletes = 0
        self._encoding_fallbacks = 0

    @staticmethod
    def _build_config(config: CacheStoreConfig | None, overrides: Mapping[str, Any]) -> CacheStoreConfig:
        base = config.model_copy() if config is not None else CacheStoreConfig()
        if not overrides:
            return base
        try:
            return CacheStoreConfig(**{**base.model_dump(), **overrides})
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid cache store options: {e.error_count()} error(s)",
                details={
                    "validation_errors": [
                        {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
                        for err in e.errors()
                    ]
                },
            ) from e

    # ------------ Properties ------------

    @property
    def namespace(self) -> str | None:
        return self.config.namespace

    @property
    def expires_in(self) -> float:
        """Default TTL in seconds applied when a write omits one."""
        return self.config.expires_in

    @expires_in.setter
    def expires_in(self, value: float | timedelta) -> None:
        if isinstance(value, timedelta):
            value = value.total_seconds()
        try:
            self.config.expires_in = value
        except ValidationError as e:
            raise ConfigurationError(
                "expires_in must be a positive number of seconds",
                details={"expires_in": value},
            ) from e

    # ------------ Helpers ------------

    async def collection(self) -> CollectionInterface:
        """
        Return the shared collection handle, opening it on first use.

        Index creation (when enabled) runs at most once, when the handle is
        opened from the database. A collection passed in directly is used
        as-is.
        """
        if self._collection is not None:
            return self._collection

        async with self._init_lock:
            if self._collection is None:
                if self._database is None:
                    raise ConfigurationError(
                        "CacheStore has no database to open its collection from",
                        details={"collection_name": self.config.collection_name},
                    )
                collection = self._database.get_collection(self.config.collection_name)
                if self.config.create_index:
                    await collection.create_index(ENTRY_INDEX)
                self._collection = collection
                logger.debug(
                    f"Opened cache collection '{collection.name}'",
                    extra={"collection": collection.name, "create_index": self.config.create_index},
                )
        return self._collection

    def _now(self) -> datetime:
        return self._clock()

    def _doc_id(self, key: Any, namespace: str | None) -> str:
        return namespaced_key(key, namespace if namespace is not None else self.config.namespace)

    def _ttl_seconds(self, expires_in: ExpiresIn) -> float:
        """
        Normalize TTL:
        - None -> store default
        - timedelta -> its total seconds
        - number -> as given (non-positive values expire immediately)
        """
        if expires_in is None:
            return self.config.expires_in
        if isinstance(expires_in, timedelta):
            return expires_in.total_seconds()
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise TypeError(f"expires_in must be seconds or a timedelta, got {type(expires_in).__name__}")
        return float(expires_in)

    def _expires_at(self, expires_in: ExpiresIn) -> datetime:
        seconds = self._ttl_seconds(expires_in)
        try:
            return self._now() + timedelta(seconds=seconds)
        except OverflowError as e:
            raise ValueError(f"expires_in of {seconds} seconds is out of range") from e

    def _backend_name(self) -> str:
        source: Any = self._collection if self._collection is not None else self._database
        name = type(source).__name__.removesuffix("Collection").removesuffix("Database").lower()
        return name or "custom"

    # ------------ Core Interface ------------

    async def write(
        self,
        key: Any,
        value: Any,
        expires_in: ExpiresIn = None,
        namespace: str | None = None,
    ) -> None:
        """
        Store ``value`` under ``key`` until ``expires_in`` seconds from now.

        Values the document store cannot encode are stored as ``str(value)``
        instead; that fallback is attempted exactly once.

        Raises:
            CacheEncodingError: If the string form cannot be stored either
            ValueError: If the expiration falls outside the representable range
        """
        doc_id = self._doc_id(key, namespace)
        expires_at = self._expires_at(expires_in)
        collection = await self.collection()

        to_mongo = getattr(value, "to_mongo", None)
        if callable(to_mongo):
            value = to_mongo()

        try:
            await collection.upsert_by_id(doc_id, {"value": value, "expires": expires_at})
        except CacheEncodingError as e:
            if isinstance(value, str):
                raise
            logger.warning(
                f"Value for key '{doc_id}' not encodable, storing its string form",
                extra={"key": doc_id, "value_type": type(value).__name__, "error": e.message},
            )
            self._encoding_fallbacks += 1
            await collection.upsert_by_id(doc_id, {"value": str(value), "expires": expires_at})

        self._writes += 1
        logger.debug(f"Cache WRITE {doc_id}", extra={"key": doc_id, "expires": expires_at.isoformat()})

    async def read(self, key: Any, namespace: str | None = None) -> Any | None:
        """
        Return the value stored under ``key``, or None if absent or expired.
        """
        doc_id = self._doc_id(key, namespace)
        collection = await self.collection()

        document = await collection.find_one({"_id": doc_id, "expires": {"$gt": self._now()}})
        if document is None:
            self._misses += 1
            logger.debug(f"Cache MISS {doc_id}", extra={"key": doc_id})
            return None

        self._hits += 1
        logger.debug(f"Cache HIT {doc_id}", extra={"key": doc_id})
        return document.get("value")

    async def exists(self, key: Any, namespace: str | None = None) -> bool:
        """Check if ``key`` holds an unexpired entry."""
        doc_id = self._doc_id(key, namespace)
        collection = await self.collection()
        return await collection.find_one({"_id": doc_id, "expires": {"$gt": self._now()}}) is not None

    async def delete(self, key: Any, namespace: str | None = None) -> bool:
        """
        Remove ``key``. Deleting an absent key is a no-op.

        Returns:
            True if a document was removed
        """
        doc_id = self._doc_id(key, namespace)
        collection = await self.collection()

        deleted = await collection.delete_many({"_id": doc_id})
        self._deletes += deleted
        logger.debug(f"Cache DELETE {doc_id}", extra={"key": doc_id, "deleted": deleted})
        return deleted > 0

    async def delete_matched(self, pattern: str | re.Pattern[str], namespace: str | None = None) -> int:
        """
        Remove every entry whose key matches ``pattern``.

        ``pattern`` is a glob string (``"user:*"``) or a compiled regex. The
        active namespace scopes the match. Not atomic: keys written while the
        delete runs may or may not be removed.

        Returns:
            Number of documents removed
        """
        ns = namespace if namespace is not None else self.config.namespace
        matcher = key_matcher(pattern, ns)
        collection = await self.collection()

        deleted = await collection.delete_many({"_id": matcher})
        self._deletes += deleted
        logger.info(
            f"Deleted {deleted} entries matching {pattern!r}",
            extra={"pattern": matcher.pattern, "namespace": ns, "deleted": deleted},
        )
        return deleted

    async def increment(
        self,
        key: Any,
        amount: int = 1,
        expires_in: ExpiresIn = None,
        namespace: str | None = None,
    ) -> int | None:
        """
        Add ``amount`` to the integer stored under ``key``.

        Not atomic (read, then write). Returns the new value, or None when
        the key is absent, in which case nothing is written.
        """
        return await self._adjust(key, amount, expires_in, namespace)

    async def decrement(
        self,
        key: Any,
        amount: int = 1,
        expires_in: ExpiresIn = None,
        namespace: str | None = None,
    ) -> int | None:
        """
        Subtract ``amount`` from the integer stored under ``key``.

        Same semantics and race window as :meth:`increment`.
        """
        return await self._adjust(key, -amount, expires_in, namespace)

    async def _adjust(
        self,
        key: Any,
        delta: int,
        expires_in: ExpiresIn,
        namespace: str | None,
    ) -> int | None:
        current = await self.read(key, namespace=namespace)
        if current is None:
            return None

        # Unguarded window: another writer may land between the read and this write
        new_value = coerce_int(current) + delta
        await self.write(key, new_value, expires_in=expires_in, namespace=namespace)
        return new_value

    async def expire_sweep(self) -> int:
        """
        Physically remove entries whose expiration has passed.

        Reads never depend on this; it only reclaims space. Since writes
        overwrite in place, space is only wasted by keys that are never
        written again, so running it rarely is enough.

        Returns:
            Number of documents removed
        """
        collection = await self.collection()
        deleted = await collection.delete_many({"expires": {"$lt": self._now()}})
        self._deletes += deleted
        logger.info(f"Swept {deleted} expired entries from '{collection.name}'", extra={"deleted": deleted})
        return deleted

    async def clear(self) -> int:
        """
        Remove every document in the collection, regardless of namespace.

        Returns:
            Number of documents removed
        """
        collection = await self.collection()
        deleted = await collection.delete_all()
        self._deletes += deleted
        logger.info(f"Cleared {deleted} entries from '{collection.name}'", extra={"deleted": deleted})
        return deleted

    # ------------ Convenience operations ------------

    async def fetch(
        self,
        key: Any,
        factory: Callable[[], Any | Awaitable[Any]] | None = None,
        force: bool = False,
        expires_in: ExpiresIn = None,
        namespace: str | None = None,
    ) -> Any | None:
        """
        Read ``key``; on a miss (or when ``force``) compute it with ``factory``.

        ``factory`` may be a plain callable or return an awaitable. Its result
        is written with the given TTL and returned. Without a factory a miss
        returns None.
        """
        if not force:
            value = await self.read(key, namespace=namespace)
            if value is not None:
                return value

        if factory is None:
            return None

        value = factory()
        if inspect.isawaitable(value):
            value = await value

        await self.write(key, value, expires_in=expires_in, namespace=namespace)
        return value

    async def read_many(self, keys: Iterable[Any], namespace: str | None = None) -> dict[Any, Any]:
        """
        Read several keys. Missing or expired keys are omitted from the result.
        """
        result: dict[Any, Any] = {}
        for key in keys:
            value = await self.read(key, namespace=namespace)
            if value is not None:
                result[key] = value
        return result

    async def write_many(
        self,
        items: Mapping[Any, Any],
        expires_in: ExpiresIn = None,
        namespace: str | None = None,
    ) -> int:
        """
        Write several entries with the same TTL.

        Returns:
            Number of entries written
        """
        count = 0
        for key, value in items.items():
            await self.write(key, value, expires_in=expires_in, namespace=namespace)
            count += 1
        return count

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "backend": self._backend_name(),
            "collection": self._collection.name if self._collection is not None else self.config.collection_name,
            "namespace": self.config.namespace,
            "default_expires_in": self.config.expires_in,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "writes": self._writes,
            "deletes": self._deletes,
            "encoding_fallbacks": self._encoding_fallbacks,
        }
