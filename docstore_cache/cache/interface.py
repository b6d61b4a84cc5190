"""
docstore-cache — Document Store Interface

Defines the narrow capability the cache store consumes from a document store.
Connection management, query execution and index building belong to the
backend; the cache store only ever talks to these two abstractions.

Filters use the MongoDB query dialect subset the cache store needs:
equality on a field, ``{"$gt": x}``, ``{"$lt": x}`` and ``{"$regex": pattern}``.
"""

from abc import ABC, abstractmethod
from typing import Any

Document = dict[str, Any]
Filter = dict[str, Any]
IndexSpec = list[tuple[str, int]]


class CollectionInterface(ABC):
    """
    Abstract document container holding cache entries.

    Implementations must raise :class:`~docstore_cache.errors.CacheEncodingError`
    when a document cannot be represented by the store, and
    :class:`~docstore_cache.errors.CacheConnectionError` when the store is
    unreachable. Other failures may surface as
    :class:`~docstore_cache.errors.CacheOperationError`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Collection name."""

    @abstractmethod
    async def upsert_by_id(self, doc_id: str, fields: Document) -> None:
        """
        Set ``fields`` on the document with ``_id == doc_id``, creating it if absent.

        Args:
            doc_id: Document identifier
            fields: Fields to set (overwrites existing values)
        """

    @abstractmethod
    async def find_one(self, filter: Filter) -> Document | None:
        """
        Return at most one document matching ``filter``.

        Args:
            filter: Query filter

        Returns:
            The first matching document, or None
        """

    @abstractmethod
    async def delete_many(self, filter: Filter) -> int:
        """
        Delete every document matching ``filter``.

        Returns:
            Number of documents deleted
        """

    @abstractmethod
    async def delete_all(self) -> int:
        """
        Delete every document in the collection.

        Returns:
            Number of documents deleted
        """

    @abstractmethod
    async def create_index(self, keys: IndexSpec) -> None:
        """
        Create an index over ``keys``.

        Args:
            keys: List of ``(field, direction)`` pairs, direction 1 or -1
        """


class DatabaseInterface(ABC):
    """
    Explicit connection provider handing out collections by name.

    The cache store never discovers a database on its own; one of these (or a
    ready collection) must be passed in at construction.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Database name."""

    @abstractmethod
    def get_collection(self, name: str) -> CollectionInterface:
        """Return a handle to the named collection (no I/O)."""

    async def close(self) -> None:
        """
        Release resources owned by this database handle.

        Default implementation does nothing; backends that own a client
        override it.
        """
        return None
