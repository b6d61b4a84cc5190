"""
docstore-cache — MongoDB Document Store Backend

Adapters exposing a pymongo ``AsyncMongoClient`` database/collection through
the collection capability.

Driver exceptions are translated here and nowhere else:
- ``bson.errors.InvalidDocument`` / ``OverflowError`` -> CacheEncodingError
- ``pymongo.errors.ConnectionFailure`` (incl. timeouts) -> CacheConnectionError
- any other ``PyMongoError`` -> CacheOperationError

Requires: pymongo>=4.10 (native asyncio API)

Example:
    database = MongoDatabase.from_url("mongodb://localhost:27017", "rails_cache")
    collection = database.get_collection("rails_cache")
    await collection.upsert_by_id("greeting", {"value": "hello", "expires": expires_at})
"""

from __future__ import annotations

import logging
from typing import Any

from ...errors import CacheConnectionError, CacheEncodingError, CacheOperationError
from ..interface import CollectionInterface, DatabaseInterface, Document, Filter, IndexSpec

logger = logging.getLogger(__name__)

try:
    from bson.errors import InvalidDocument
    from pymongo import AsyncMongoClient
    from pymongo.asynchronous.collection import AsyncCollection
    from pymongo.asynchronous.database import AsyncDatabase
    from pymongo.errors import ConnectionFailure, PyMongoError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "pymongo async client is required but not installed. "
        "Install with: pip install 'pymongo>=4.10' or add 'pymongo' to your dependencies."
    ) from e


def _translate(error: Exception, operation: str, collection: str, **details: Any) -> Exception:
    """Map a driver exception onto the cache error taxonomy."""
    context = {"operation": operation, "collection": collection, "error": str(error), **details}
    if isinstance(error, ConnectionFailure):
        return CacheConnectionError("mongo", details=context)
    return CacheOperationError(f"MongoDB {operation} failed on '{collection}': {error}", details=context)


class MongoCollection(CollectionInterface):
    """
    Collection capability backed by a pymongo ``AsyncCollection``.

    Notes:
    - Upserts use ``update_one(..., {"$set": fields}, upsert=True)`` so an
      existing document is overwritten in place, never duplicated.
    - ``find_one`` is a find with ``limit(1)``.
    """

    def __init__(self, collection: AsyncCollection[Document]):
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    async def upsert_by_id(self, doc_id: str, fields: Document) -> None:
        try:
            await self._collection.update_one({"_id": doc_id}, {"$set": fields}, upsert=True)
        except (InvalidDocument, OverflowError) as e:
            value = fields.get("value")
            raise CacheEncodingError(
                type(value).__name__,
                details={"collection": self.name, "error": str(e)},
            ) from e
        except PyMongoError as e:
            raise _translate(e, "upsert", self.name) from e

    async def find_one(self, filter: Filter) -> Document | None:
        try:
            return await self._collection.find_one(filter)
        except PyMongoError as e:
            raise _translate(e, "find", self.name) from e

    async def delete_many(self, filter: Filter) -> int:
        try:
            result = await self._collection.delete_many(filter)
        except PyMongoError as e:
            raise _translate(e, "delete", self.name) from e
        return result.deleted_count

    async def delete_all(self) -> int:
        try:
            result = await self._collection.delete_many({})
        except PyMongoError as e:
            raise _translate(e, "delete_all", self.name) from e
        return result.deleted_count

    async def create_index(self, keys: IndexSpec) -> None:
        try:
            index_name = await self._collection.create_index(keys)
        except PyMongoError as e:
            raise _translate(e, "create_index", self.name, keys=str(keys)) from e
        logger.info(
            f"Ensured index '{index_name}' on collection '{self.name}'",
            extra={"collection": self.name, "index": index_name},
        )


class MongoDatabase(DatabaseInterface):
    """
    Database provider backed by a pymongo ``AsyncDatabase``.

    When built with :meth:`from_url` the database owns its client and closes it
    on :meth:`close`; a database handle passed in directly is never closed here.
    """

    def __init__(
        self,
        database: AsyncDatabase[Document],
        client: AsyncMongoClient[Document] | None = None,
    ):
        self._database = database
        self._client = client

    @classmethod
    def from_url(
        cls,
        mongo_url: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
        socket_timeout_ms: int = 5000,
    ) -> MongoDatabase:
        """
        Create a client for ``mongo_url`` and wrap its ``database_name`` database.

        The client connects lazily on first command.
        """
        if not mongo_url:
            raise ValueError("mongo_url is required")

        client: AsyncMongoClient[Document] = AsyncMongoClient(
            mongo_url,
            tz_aware=True,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            socketTimeoutMS=socket_timeout_ms,
        )
        return cls(client[database_name], client=client)

    @property
    def name(self) -> str:
        return self._database.name

    def get_collection(self, name: str) -> MongoCollection:
        return MongoCollection(self._database[name])

    async def close(self) -> None:
        """Close the owned client, if any."""
        if self._client is None:
            return
        try:
            await self._client.close()
            logger.info(f"Closed MongoDB client for database '{self.name}'")
        except Exception as e:
            logger.error(
                f"Error closing MongoDB client: {e}",
                extra={"database": self.name, "error": str(e)},
                exc_info=True,
            )
        finally:
            self._client = None
