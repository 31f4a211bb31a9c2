"""
Tests for the in-memory document store.
"""

import pytest

from booknest.database import BOOKS, USERS
from booknest.errors import DuplicateKeyError


@pytest.fixture
def book_document():
    return {
        "title": "Dune",
        "author": "Frank Herbert",
        "isbn": "978-0441013593",
        "genre": "Science Fiction",
        "published_year": 1965,
        "pages": 412,
        "price": 9.99,
        "added_by": "user-1",
    }


class TestInMemoryDocumentStore:

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamps(self, memory_store, book_document):
        stored = await memory_store.insert_unique(BOOKS, book_document)

        assert stored["id"]
        assert stored["created_at"] == stored["updated_at"]
        assert stored["title"] == "Dune"
        assert "id" not in book_document

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, memory_store, book_document):
        stored = await memory_store.insert_unique(BOOKS, book_document)
        stored["title"] = "Changed"

        fetched = await memory_store.find_by_id(BOOKS, stored["id"])
        assert fetched["title"] == "Dune"

    @pytest.mark.asyncio
    async def test_find_by_unique_field(self, memory_store):
        await memory_store.insert_unique(USERS, {"email": "ann@x.com", "name": "Ann"})

        assert (await memory_store.find_by_unique_field(USERS, "email", "ann@x.com"))["name"] == "Ann"
        assert await memory_store.find_by_unique_field(USERS, "email", "bob@x.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_insert_fails_without_overwriting(self, memory_store):
        await memory_store.insert_unique(USERS, {"email": "ann@x.com", "name": "Ann"})

        with pytest.raises(DuplicateKeyError) as exc_info:
            await memory_store.insert_unique(USERS, {"email": "ann@x.com", "name": "Impostor"})

        assert exc_info.value.field == "email"
        users = await memory_store.find_all(USERS)
        assert [user["name"] for user in users] == ["Ann"]

    @pytest.mark.asyncio
    async def test_find_all_keeps_insertion_order(self, memory_store, book_document):
        for index in range(3):
            await memory_store.insert_unique(BOOKS, {**book_document, "isbn": f"111-{index}"})

        books = await memory_store.find_all(BOOKS)
        assert [book["isbn"] for book in books] == ["111-0", "111-1", "111-2"]

    @pytest.mark.asyncio
    async def test_partial_update_changes_only_supplied_fields(self, memory_store, book_document):
        stored = await memory_store.insert_unique(BOOKS, book_document)

        updated = await memory_store.apply_partial_update(BOOKS, stored["id"], {"price": 12.5})

        assert updated["price"] == 12.5
        assert updated["title"] == "Dune"
        assert updated["created_at"] == stored["created_at"]
        assert updated["updated_at"] >= stored["updated_at"]

    @pytest.mark.asyncio
    async def test_partial_update_unknown_id(self, memory_store):
        assert await memory_store.apply_partial_update(BOOKS, "missing", {"price": 1}) is None

    @pytest.mark.asyncio
    async def test_partial_update_respects_uniqueness(self, memory_store, book_document):
        await memory_store.insert_unique(BOOKS, book_document)
        other = await memory_store.insert_unique(BOOKS, {**book_document, "isbn": "222"})

        with pytest.raises(DuplicateKeyError):
            await memory_store.apply_partial_update(BOOKS, other["id"], {"isbn": book_document["isbn"]})

        assert (await memory_store.find_by_id(BOOKS, other["id"]))["isbn"] == "222"

    @pytest.mark.asyncio
    async def test_partial_update_keeps_own_unique_value(self, memory_store, book_document):
        stored = await memory_store.insert_unique(BOOKS, book_document)

        updated = await memory_store.apply_partial_update(BOOKS, stored["id"], {"isbn": book_document["isbn"]})
        assert updated["isbn"] == book_document["isbn"]

    @pytest.mark.asyncio
    async def test_delete(self, memory_store, book_document):
        stored = await memory_store.insert_unique(BOOKS, book_document)

        deleted = await memory_store.delete_by_id(BOOKS, stored["id"])

        assert deleted["id"] == stored["id"]
        assert await memory_store.find_by_id(BOOKS, stored["id"]) is None
        assert await memory_store.delete_by_id(BOOKS, stored["id"]) is None

    @pytest.mark.asyncio
    async def test_health_check(self, memory_store):
        await memory_store.insert_unique(USERS, {"email": "ann@x.com"})

        health = await memory_store.health_check()
        assert health["status"] == "healthy"
        assert health["collections"] == {"users": 1}
