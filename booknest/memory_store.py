"""
In-memory document store for tests and local development.

Selected with `STORAGE_BACKEND=memory`. Data lives only as long as the
process and is not shared between workers.
"""

import copy
import uuid
from typing import Any, Dict, List, Mapping, Optional

import structlog

from booknest.database import UNIQUE_FIELDS, Document, DocumentStore, utcnow
from booknest.errors import DuplicateKeyError

logger = structlog.get_logger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed implementation of `DocumentStore`.

    Each collection maps id -> document and keeps insertion order. Callers
    always receive copies, so mutating a returned document never changes
    stored state.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    def _check_unique(self, collection: str, document: Mapping[str, Any], exclude_id: Optional[str] = None) -> None:
        for field in UNIQUE_FIELDS.get(collection, ()):
            if field not in document:
                continue
            for doc_id, stored in self._collection(collection).items():
                if doc_id != exclude_id and stored.get(field) == document[field]:
                    logger.warning("Duplicate key", collection=collection, field=field)
                    raise DuplicateKeyError(field=field)

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "collections": {name: len(docs) for name, docs in self._collections.items()},
        }

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        document = self._collection(collection).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def find_by_unique_field(self, collection: str, field: str, value: Any) -> Optional[Document]:
        for document in self._collection(collection).values():
            if document.get(field) == value:
                return copy.deepcopy(document)
        return None

    async def find_all(self, collection: str) -> List[Document]:
        return [copy.deepcopy(document) for document in self._collection(collection).values()]

    async def insert_unique(self, collection: str, document: Mapping[str, Any]) -> Document:
        self._check_unique(collection, document)

        now = utcnow()
        doc_id = uuid.uuid4().hex
        stored = copy.deepcopy(dict(document))
        stored.update({"id": doc_id, "created_at": now, "updated_at": now})
        self._collection(collection)[doc_id] = stored
        return copy.deepcopy(stored)

    async def apply_partial_update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any]
    ) -> Optional[Document]:
        stored = self._collection(collection).get(doc_id)
        if stored is None:
            return None

        update = {key: value for key, value in changes.items() if key not in ("id", "created_at")}
        self._check_unique(collection, update, exclude_id=doc_id)

        stored.update(copy.deepcopy(update))
        stored["updated_at"] = utcnow()
        return copy.deepcopy(stored)

    async def delete_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        return self._collection(collection).pop(doc_id, None)
