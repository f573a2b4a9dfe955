"""In-memory document store for tests and local development."""

from __future__ import annotations

import copy
import logging
from typing import Any

from bson import ObjectId

from quill_persistence.adapters import _reject_operators, _validate_limit, _validate_offset
from quill_persistence.exceptions import DuplicateEntityError
from quill_persistence.protocols import Document, SortSpec

logger = logging.getLogger(__name__)


class InMemoryAdapter:
    """Dict-backed collection that mirrors the DocumentStore protocol.

    Documents are kept in insertion order and copied on the way in and out,
    so callers cannot mutate stored state by accident.  Unique indexes are
    honoured on insert and update.

    .. warning::
        All data is lost on process restart.  Do **not** use in production.
    """

    def __init__(self, collection_name: str) -> None:
        self._collection_name = collection_name
        self._docs: dict[Any, Document] = {}
        self._unique_fields: set[str] = set()

    @property
    def collection_name(self) -> str:
        return self._collection_name

    async def find(
        self,
        filters: Document | None = None,
        *,
        projection: list[str] | None = None,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Document]:
        limit = _validate_limit(limit)
        skip = _validate_offset(skip)
        _reject_operators(filters, self._collection_name, "find")
        if limit == 0:
            return []
        docs = self._matching(filters)
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d, k=key: _sort_key(d.get(k)), reverse=direction < 0)
        docs = docs[skip:]
        if limit is not None:
            docs = docs[:limit]
        return [_project(d, projection) for d in docs]

    async def count(self, filters: Document | None = None) -> int:
        _reject_operators(filters, self._collection_name, "count")
        return len(self._matching(filters))

    async def find_by_id(self, id: Any) -> Document | None:
        doc = self._docs.get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_by_ids(self, ids: list[Any], *, projection: list[str] | None = None) -> list[Document]:
        return [_project(self._docs[i], projection) for i in ids if i in self._docs]

    async def find_one(self, filters: Document) -> Document | None:
        _reject_operators(filters, self._collection_name, "find_one")
        docs = self._matching(filters)
        return copy.deepcopy(docs[0]) if docs else None

    async def create(self, data: Document) -> Document:
        doc = copy.deepcopy(data)
        doc.setdefault("_id", ObjectId())
        if doc["_id"] in self._docs:
            raise self._duplicate("create", "_id")
        self._check_unique(doc, "create")
        self._docs[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def update_one(self, filters: Document, patch: Document) -> Document | None:
        _reject_operators(patch, self._collection_name, "update_one")
        docs = self._matching(filters)
        if not docs:
            return None
        current = docs[0]
        updated = {**current, **copy.deepcopy(patch)}
        self._check_unique(updated, "update_one")
        self._docs[current["_id"]] = updated
        return copy.deepcopy(updated)

    async def delete_one(self, filters: Document) -> Document | None:
        docs = self._matching(filters)
        if not docs:
            return None
        return self._docs.pop(docs[0]["_id"])

    async def delete_many(self, filters: Document) -> int:
        docs = self._matching(filters)
        for doc in docs:
            del self._docs[doc["_id"]]
        return len(docs)

    async def add_to_list(self, id: Any, field: str, value: Any) -> bool:
        doc = self._docs.get(id)
        if doc is None:
            return False
        items = doc.setdefault(field, [])
        if value not in items:
            items.append(copy.deepcopy(value))
        return True

    async def remove_from_list(self, id: Any, field: str, value: Any) -> bool:
        doc = self._docs.get(id)
        if doc is None:
            return False
        doc[field] = [item for item in doc.get(field, []) if item != value]
        return True

    async def ensure_unique_index(self, field: str) -> None:
        self._unique_fields.add(field)

    def _matching(self, filters: Document | None) -> list[Document]:
        """Return stored documents (not copies) matching equality *filters*."""
        if not filters:
            return list(self._docs.values())
        return [
            doc for doc in self._docs.values() if all(doc.get(key) == value for key, value in filters.items())
        ]

    def _check_unique(self, doc: Document, operation: str) -> None:
        for field in self._unique_fields:
            if field not in doc:
                continue
            for other in self._docs.values():
                if other["_id"] != doc["_id"] and other.get(field) == doc[field]:
                    raise self._duplicate(operation, field)

    def _duplicate(self, operation: str, field: str) -> DuplicateEntityError:
        logger.debug("In-memory %s on %s violated unique field %s", operation, self._collection_name, field)
        return DuplicateEntityError(
            collection=self._collection_name,
            operation=operation,
            detail="A document with the same key already exists.",
        )


def _project(doc: Document, fields: list[str] | None) -> Document:
    if not fields:
        return copy.deepcopy(doc)
    keep = {"_id", *fields}
    return {key: copy.deepcopy(value) for key, value in doc.items() if key in keep}


def _sort_key(value: Any) -> tuple[bool, Any]:
    # Missing values sort first, as in MongoDB ascending order.
    return (value is not None, value if value is not None else 0)
