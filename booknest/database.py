"""
Document store layer for the BookNest API.

`DocumentStore` names the operations the services rely on. `MongoDocumentStore`
implements them with motor; `booknest.memory_store.InMemoryDocumentStore`
implements them in process memory.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError

from booknest.errors import DuplicateKeyError, StoreError

logger = structlog.get_logger(__name__)

USERS = "users"
BOOKS = "books"

# Fields that must be unique within their collection.
UNIQUE_FIELDS: Dict[str, tuple] = {
    USERS: ("email",),
    BOOKS: ("isbn",),
}

Document = Dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStore(ABC):
    """
    Persistence contract for users and books.

    Documents go in and come out as plain dicts. Identifiers are opaque
    strings exposed under the `id` key; a malformed identifier behaves like
    an absent one. Inserts and updates raise `DuplicateKeyError` when a value
    in `UNIQUE_FIELDS` is already taken.
    """

    backend = "abstract"

    async def connect(self) -> None:
        """Open the underlying connection, if any."""

    async def close(self) -> None:
        """Release the underlying connection, if any."""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Report store status as a dict with at least a `status` key."""

    @abstractmethod
    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        """Return the document with this id, or None."""

    @abstractmethod
    async def find_by_unique_field(self, collection: str, field: str, value: Any) -> Optional[Document]:
        """Return the single document whose unique `field` equals `value`, or None."""

    @abstractmethod
    async def find_all(self, collection: str) -> List[Document]:
        """Return every document in insertion order."""

    @abstractmethod
    async def insert_unique(self, collection: str, document: Mapping[str, Any]) -> Document:
        """
        Insert a new document, stamping `created_at` and `updated_at`.

        Returns:
            The stored document including its `id`

        Raises:
            DuplicateKeyError: If a unique field value is already taken
        """

    @abstractmethod
    async def apply_partial_update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any]
    ) -> Optional[Document]:
        """
        Set only the supplied fields and refresh `updated_at`.

        Returns:
            The updated document, or None if the id is absent

        Raises:
            DuplicateKeyError: If a unique field value is already taken
        """

    @abstractmethod
    async def delete_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        """Remove a document and return it, or None if the id is absent."""


class MongoDocumentStore(DocumentStore):
    """
    MongoDB implementation backed by motor.

    Unique indexes enforce `UNIQUE_FIELDS`; `_id` ObjectIds are exposed as
    string `id` values.
    """

    backend = "mongodb"

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        database: Optional[AsyncIOMotorDatabase] = None
    ):
        """
        Initialize MongoDB store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            database: Already-open database handle, skips client creation on connect
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = database

    async def connect(self) -> None:
        """Establish connection to MongoDB and create indexes."""
        try:
            if self.database is None:
                self.client = AsyncIOMotorClient(self.connection_url, tz_aware=True)
                self.database = self.client[self.database_name]

            await self.database.command("ping")
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()
        except PyMongoError as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the unique indexes and the lookup index on book owner."""
        for collection, fields in UNIQUE_FIELDS.items():
            for field in fields:
                await self.database[collection].create_index(field, unique=True)
        await self.database[BOOKS].create_index("added_by")
        logger.info("Successfully created MongoDB indexes")

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if self.database is None:
            return {"status": "disconnected"}
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except PyMongoError as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    @staticmethod
    def _to_object_id(doc_id: Any) -> Optional[ObjectId]:
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            return None

    @staticmethod
    def _from_document(document: Optional[Mapping[str, Any]]) -> Optional[Document]:
        if document is None:
            return None
        result = dict(document)
        result["id"] = str(result.pop("_id"))
        return result

    @staticmethod
    def _duplicate_field(error: MongoDuplicateKeyError) -> Optional[str]:
        key_pattern = (error.details or {}).get("keyPattern") or {}
        return next(iter(key_pattern), None)

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        object_id = self._to_object_id(doc_id)
        if object_id is None:
            return None
        try:
            document = await self.database[collection].find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to find document by id", collection=collection, doc_id=doc_id, error=str(e))
            raise StoreError("Database operation failed") from e
        return self._from_document(document)

    async def find_by_unique_field(self, collection: str, field: str, value: Any) -> Optional[Document]:
        try:
            document = await self.database[collection].find_one({field: value})
        except PyMongoError as e:
            logger.error("Failed to find document", collection=collection, field=field, error=str(e))
            raise StoreError("Database operation failed") from e
        return self._from_document(document)

    async def find_all(self, collection: str) -> List[Document]:
        try:
            cursor = self.database[collection].find({}).sort("_id", 1)
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to list documents", collection=collection, error=str(e))
            raise StoreError("Database operation failed") from e
        return [self._from_document(document) for document in documents]

    async def insert_unique(self, collection: str, document: Mapping[str, Any]) -> Document:
        now = utcnow()
        new_document = {**document, "created_at": now, "updated_at": now}
        new_document.pop("id", None)
        try:
            result = await self.database[collection].insert_one(new_document)
        except MongoDuplicateKeyError as e:
            field = self._duplicate_field(e)
            logger.warning("Duplicate key on insert", collection=collection, field=field)
            raise DuplicateKeyError(field=field) from e
        except PyMongoError as e:
            logger.error("Failed to insert document", collection=collection, error=str(e))
            raise StoreError("Database operation failed") from e

        new_document["_id"] = result.inserted_id
        logger.debug("Successfully inserted document", collection=collection, doc_id=str(result.inserted_id))
        return self._from_document(new_document)

    async def apply_partial_update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any]
    ) -> Optional[Document]:
        object_id = self._to_object_id(doc_id)
        if object_id is None:
            return None

        update = {key: value for key, value in changes.items() if key not in ("id", "_id", "created_at")}
        update["updated_at"] = utcnow()
        try:
            document = await self.database[collection].find_one_and_update(
                {"_id": object_id},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError as e:
            field = self._duplicate_field(e)
            logger.warning("Duplicate key on update", collection=collection, doc_id=doc_id, field=field)
            raise DuplicateKeyError(field=field) from e
        except PyMongoError as e:
            logger.error("Failed to update document", collection=collection, doc_id=doc_id, error=str(e))
            raise StoreError("Database operation failed") from e
        return self._from_document(document)

    async def delete_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        object_id = self._to_object_id(doc_id)
        if object_id is None:
            return None
        try:
            document = await self.database[collection].find_one_and_delete({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to delete document", collection=collection, doc_id=doc_id, error=str(e))
            raise StoreError("Database operation failed") from e
        return self._from_document(document)
