"""
docstore-cache — Memory Document Store Backend

In-process implementation of the collection capability.
Suitable for tests and single-process deployments; data lives only as long
as the MemoryDatabase instance.

Supports the filter subset the cache store issues: field equality, compiled
regex values, and the ``$gt``, ``$gte``, ``$lt``, ``$lte``, ``$eq``, ``$ne``,
``$in`` and ``$regex`` operators. Values are checked against the BSON type
set so encoding failures surface the same way they do against MongoDB.
"""

import asyncio
import copy
import logging
import re
from datetime import datetime
from typing import Any

from ...errors import CacheEncodingError, CacheOperationError
from ..interface import CollectionInterface, DatabaseInterface, Document, Filter, IndexSpec

logger = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _encode(value: Any, path: str = "value") -> Any:
    """
    Return a storable copy of ``value`` or raise CacheEncodingError.

    Tuples are stored as lists, the same way BSON round-trips them.
    """
    if value is None or isinstance(value, (bool, float, str, bytes, datetime, re.Pattern)):
        return value
    if isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise CacheEncodingError(type(value).__name__, details={"path": path, "reason": "integer overflow"})
        return value
    if isinstance(value, dict):
        encoded = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise CacheEncodingError(
                    type(value).__name__,
                    details={"path": path, "reason": f"non-string key of type {type(k).__name__}"},
                )
            encoded[k] = _encode(v, f"{path}.{k}")
        return encoded
    if isinstance(value, (list, tuple)):
        return [_encode(v, f"{path}[{i}]") for i, v in enumerate(value)]
    raise CacheEncodingError(type(value).__name__, details={"path": path})


def _compare(op: str, actual: Any, expected: Any) -> bool:
    try:
        if op == "$gt":
            return actual > expected
        if op == "$gte":
            return actual >= expected
        if op == "$lt":
            return actual < expected
        if op == "$lte":
            return actual <= expected
    except TypeError:
        # Mongo never matches across incomparable BSON types
        return False
    raise CacheOperationError(f"Unsupported query operator: {op}", details={"operator": op})


def _regex_matches(pattern: Any, actual: Any, options: str = "") -> bool:
    if not isinstance(actual, str):
        return False
    if not isinstance(pattern, re.Pattern):
        flags = 0
        if "i" in options:
            flags |= re.IGNORECASE
        if "m" in options:
            flags |= re.MULTILINE
        if "s" in options:
            flags |= re.DOTALL
        if "x" in options:
            flags |= re.VERBOSE
        pattern = re.compile(pattern, flags)
    return pattern.search(actual) is not None


def _field_matches(document: Document, field: str, condition: Any) -> bool:
    present = field in document
    actual = document.get(field)

    if isinstance(condition, re.Pattern):
        return present and _regex_matches(condition, actual)

    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, expected in condition.items():
            if op == "$options":
                continue
            if op == "$regex":
                if not (present and _regex_matches(expected, actual, condition.get("$options", ""))):
                    return False
            elif op == "$eq":
                if not (present and actual == expected):
                    return False
            elif op == "$ne":
                if present and actual == expected:
                    return False
            elif op == "$in":
                if not (present and actual in expected):
                    return False
            elif not (present and _compare(op, actual, expected)):
                return False
        return True

    return present and actual == condition


def matches(document: Document, filter: Filter) -> bool:
    """Return True if ``document`` satisfies every clause of ``filter``."""
    return all(_field_matches(document, field, condition) for field, condition in filter.items())


class MemoryCollection(CollectionInterface):
    """
    In-memory document collection.

    Features:
    - Upsert-by-id with per-field overwrite
    - Filtered find/delete over the supported operator subset
    - Index specs recorded (no-op for lookups)
    """

    def __init__(self, name: str):
        self._name = name
        self._documents: dict[Any, Document] = {}
        self._indexes: list[IndexSpec] = []
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def indexes(self) -> list[IndexSpec]:
        """Index specs requested so far."""
        return list(self._indexes)

    async def upsert_by_id(self, doc_id: str, fields: Document) -> None:
        encoded = {k: _encode(v, k) for k, v in fields.items()}
        # Yield like a network round-trip would
        await asyncio.sleep(0)
        async with self._lock:
            document = self._documents.setdefault(doc_id, {"_id": doc_id})
            document.update(encoded)

    async def find_one(self, filter: Filter) -> Document | None:
        await asyncio.sleep(0)
        async with self._lock:
            for document in self._documents.values():
                if matches(document, filter):
                    return copy.deepcopy(document)
        return None

    async def delete_many(self, filter: Filter) -> int:
        await asyncio.sleep(0)
        async with self._lock:
            doomed = [doc_id for doc_id, document in self._documents.items() if matches(document, filter)]
            for doc_id in doomed:
                del self._documents[doc_id]
        return len(doomed)

    async def delete_all(self) -> int:
        await asyncio.sleep(0)
        async with self._lock:
            count = len(self._documents)
            self._documents.clear()
        return count

    async def create_index(self, keys: IndexSpec) -> None:
        async with self._lock:
            if keys not in self._indexes:
                self._indexes.append(list(keys))
        logger.debug(f"Recorded index on memory collection '{self._name}': {keys}")

    async def count_documents(self, filter: Filter | None = None) -> int:
        """Count physically stored documents, expired ones included."""
        async with self._lock:
            if not filter:
                return len(self._documents)
            return sum(1 for document in self._documents.values() if matches(document, filter))


class MemoryDatabase(DatabaseInterface):
    """In-memory database handing out MemoryCollection instances by name."""

    def __init__(self, name: str = "rails_cache"):
        self._name = name
        self._collections: dict[str, MemoryCollection] = {}

    @property
    def name(self) -> str:
        return self._name

    def get_collection(self, name: str) -> MemoryCollection:
        if name not in self._collections:
            self._collections[name] = MemoryCollection(name)
        return self._collections[name]

    async def close(self) -> None:
        """Close database and release resources."""
        # Memory backend doesn't need cleanup - data persists in-process
        logger.debug(f"Memory database '{self._name}' closed")
