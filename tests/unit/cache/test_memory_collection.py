"""
docstore-cache — Memory Document Store Tests

Test suite for the in-memory collection and database: upserts, the
supported filter operators, value encoding and isolation of returned
documents.
"""

import re
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from docstore_cache.cache.backends.memory import MemoryCollection, MemoryDatabase, matches
from docstore_cache.errors import CacheEncodingError, CacheOperationError

NOW = datetime(2026, 1, 1, tzinfo=UTC)


class TestMemoryCollection:
    """Test suite for MemoryCollection."""

    @pytest.fixture
    def collection(self) -> MemoryCollection:
        """Create a fresh collection for each test."""
        return MemoryCollection("entries")

    async def test_upsert_inserts_then_updates(self, collection: MemoryCollection) -> None:
        """Upserts create the document, then overwrite fields in place."""
        await collection.upsert_by_id("k", {"value": 1, "expires": NOW})
        await collection.upsert_by_id("k", {"value": 2})

        document = await collection.find_one({"_id": "k"})
        assert document == {"_id": "k", "value": 2, "expires": NOW}
        assert await collection.count_documents() == 1

    async def test_find_one_missing(self, collection: MemoryCollection) -> None:
        assert await collection.find_one({"_id": "missing"}) is None

    async def test_find_one_returns_copy(self, collection: MemoryCollection) -> None:
        """Mutating a returned document leaves the stored one intact."""
        await collection.upsert_by_id("k", {"value": {"items": [1]}})

        document = await collection.find_one({"_id": "k"})
        assert document is not None
        document["value"]["items"].append(2)

        assert (await collection.find_one({"_id": "k"}))["value"] == {"items": [1]}

    async def test_stored_value_detached_from_caller(self, collection: MemoryCollection) -> None:
        payload = {"items": [1]}
        await collection.upsert_by_id("k", {"value": payload})
        payload["items"].append(2)

        assert (await collection.find_one({"_id": "k"}))["value"] == {"items": [1]}

    async def test_delete_many_counts(self, collection: MemoryCollection) -> None:
        for i in range(3):
            await collection.upsert_by_id(f"k{i}", {"n": i})

        assert await collection.delete_many({"n": {"$gte": 1}}) == 2
        assert await collection.count_documents() == 1
        assert await collection.delete_many({"n": 99}) == 0

    async def test_delete_many_by_regex(self, collection: MemoryCollection) -> None:
        for key in ("user:1", "user:2", "post:1"):
            await collection.upsert_by_id(key, {"value": key})

        assert await collection.delete_many({"_id": re.compile(r"^user:")}) == 2
        assert await collection.find_one({"_id": "post:1"}) is not None

    async def test_delete_all(self, collection: MemoryCollection) -> None:
        for i in range(4):
            await collection.upsert_by_id(f"k{i}", {"n": i})

        assert await collection.delete_all() == 4
        assert await collection.count_documents() == 0

    async def test_create_index_recorded_once(self, collection: MemoryCollection) -> None:
        spec = [("_id", 1), ("expires", -1)]
        await collection.create_index(spec)
        await collection.create_index(spec)

        assert collection.indexes == [spec]

    async def test_count_documents_with_filter(self, collection: MemoryCollection) -> None:
        await collection.upsert_by_id("a", {"expires": NOW - timedelta(seconds=1)})
        await collection.upsert_by_id("b", {"expires": NOW + timedelta(seconds=1)})

        assert await collection.count_documents({"expires": {"$lt": NOW}}) == 1


class TestEncoding:
    """Values outside the document type set are rejected."""

    @pytest.fixture
    def collection(self) -> MemoryCollection:
        return MemoryCollection("entries")

    @pytest.mark.parametrize(
        "value",
        [None, True, 1, 1.5, "s", b"raw", NOW, [1, "a"], {"nested": {"list": [1, 2]}}],
    )
    async def test_encodable_values(self, collection: MemoryCollection, value: object) -> None:
        await collection.upsert_by_id("k", {"value": value})
        assert (await collection.find_one({"_id": "k"}))["value"] == value

    async def test_tuple_becomes_list(self, collection: MemoryCollection) -> None:
        await collection.upsert_by_id("k", {"value": (1, (2, 3))})
        assert (await collection.find_one({"_id": "k"}))["value"] == [1, [2, 3]]

    @pytest.mark.parametrize(
        "value",
        [object(), Decimal("1.5"), {1, 2}, {1: "int key"}, 2**63, [object()]],
    )
    async def test_unencodable_values(self, collection: MemoryCollection, value: object) -> None:
        with pytest.raises(CacheEncodingError):
            await collection.upsert_by_id("k", {"value": value})

        assert await collection.count_documents() == 0

    async def test_error_carries_value_type(self, collection: MemoryCollection) -> None:
        with pytest.raises(CacheEncodingError) as exc_info:
            await collection.upsert_by_id("k", {"value": {"inner": Decimal("1")}})

        assert exc_info.value.value_type == "Decimal"
        assert exc_info.value.details["path"] == "value.inner"


class TestFilterMatching:
    """Test the filter operator subset."""

    DOC = {"_id": "user:1", "n": 5, "expires": NOW, "tags": "a"}

    @pytest.mark.parametrize(
        ("filter", "expected"),
        [
            ({"_id": "user:1"}, True),
            ({"_id": "user:2"}, False),
            ({"n": {"$gt": 4}}, True),
            ({"n": {"$gt": 5}}, False),
            ({"n": {"$gte": 5, "$lte": 5}}, True),
            ({"n": {"$lt": 5}}, False),
            ({"n": {"$eq": 5}}, True),
            ({"n": {"$ne": 5}}, False),
            ({"n": {"$in": [1, 5]}}, True),
            ({"missing": {"$ne": 1}}, True),
            ({"missing": {"$gt": 0}}, False),
            ({"_id": {"$regex": "^USER", "$options": "i"}}, True),
            ({"_id": re.compile(r"^user:\d$")}, True),
            ({"n": re.compile(r"5")}, False),
            ({"expires": {"$gt": NOW - timedelta(seconds=1)}}, True),
            ({"expires": {"$gt": "not a date"}}, False),
            ({"_id": "user:1", "n": {"$lt": 3}}, False),
        ],
    )
    def test_matches(self, filter: dict, expected: bool) -> None:
        assert matches(self.DOC, filter) is expected

    def test_unsupported_operator(self) -> None:
        with pytest.raises(CacheOperationError):
            matches(self.DOC, {"n": {"$mod": [2, 1]}})


class TestMemoryDatabase:
    """Test suite for MemoryDatabase."""

    def test_collections_cached_by_name(self) -> None:
        database = MemoryDatabase()
        assert database.name == "rails_cache"
        assert database.get_collection("a") is database.get_collection("a")
        assert database.get_collection("a") is not database.get_collection("b")
        assert database.get_collection("a").name == "a"

    async def test_close_keeps_data(self) -> None:
        database = MemoryDatabase("db")
        await database.get_collection("c").upsert_by_id("k", {"value": 1})

        await database.close()

        assert await database.get_collection("c").count_documents() == 1
