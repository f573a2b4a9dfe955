"""Motor/MongoDB adapter implementing the DocumentStore protocol."""

from __future__ import annotations

import logging
from typing import Any

from pymongo import ReturnDocument

from quill_persistence.adapters import _reject_operators, _validate_limit, _validate_offset
from quill_persistence.exceptions import (
    ConnectionFailedError,
    DuplicateEntityError,
    PersistenceError,
    QueryError,
)
from quill_persistence.protocols import Document, SortSpec

logger = logging.getLogger(__name__)

_READ_OPERATIONS = frozenset({"find", "find_by_id", "find_by_ids", "find_one", "count"})


class MongoAdapter:
    """Async MongoDB adapter backed by Motor.

    Wraps one collection of a ``AsyncIOMotorDatabase``.  Every driver
    exception is translated into a :class:`PersistenceError` subclass:

    - duplicate key (code 11000) -> :class:`DuplicateEntityError`
    - network / server selection failures -> :class:`ConnectionFailedError`
    - any other read failure -> :class:`QueryError`
    - any other write failure -> :class:`PersistenceError`
    """

    def __init__(self, collection_name: str, database: Any = None) -> None:
        self._collection_name = collection_name
        self._database = database

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _get_collection(self) -> Any:
        """Return the Motor collection, raising if no database is configured."""
        if self._database is None:
            raise RuntimeError(
                "MongoAdapter requires a Motor database instance. Pass it via the `database` constructor parameter."
            )
        return self._database[self._collection_name]

    async def find(
        self,
        filters: Document | None = None,
        *,
        projection: list[str] | None = None,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Document]:
        """Retrieve documents matching *filters*.

        Args:
            filters: Equality filters.  ``$``-prefixed keys raise ``QueryError``.
            projection: Field names to return (``_id`` is always included).
            sort: ``[(field, direction), ...]`` as accepted by ``cursor.sort``.
            skip: Documents to skip (>= 0).
            limit: Max documents (0-1000).  ``0`` returns an empty list without
                touching the database; Mongo itself would read it as "no limit".
        """
        limit = _validate_limit(limit)
        skip = _validate_offset(skip)
        _reject_operators(filters, self._collection_name, "find")
        if limit == 0:
            return []
        coll = self._get_collection()
        try:
            cursor = coll.find(filters or {}, _projection(projection))
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            return [dict(doc) async for doc in cursor]
        except Exception as exc:
            raise self._translate(exc, "find") from exc

    async def count(self, filters: Document | None = None) -> int:
        """Count documents matching *filters*."""
        _reject_operators(filters, self._collection_name, "count")
        coll = self._get_collection()
        try:
            return int(await coll.count_documents(filters or {}))
        except Exception as exc:
            raise self._translate(exc, "count") from exc

    async def find_by_id(self, id: Any) -> Document | None:
        """Retrieve a single document by ``_id``."""
        return await self._find_one({"_id": id}, "find_by_id")

    async def find_one(self, filters: Document) -> Document | None:
        """Retrieve the first document matching *filters*."""
        _reject_operators(filters, self._collection_name, "find_one")
        return await self._find_one(filters, "find_one")

    async def _find_one(self, filters: Document, operation: str) -> Document | None:
        coll = self._get_collection()
        try:
            doc = await coll.find_one(filters)
            return dict(doc) if doc else None
        except Exception as exc:
            raise self._translate(exc, operation) from exc

    async def find_by_ids(self, ids: list[Any], *, projection: list[str] | None = None) -> list[Document]:
        """Retrieve every document whose ``_id`` is in *ids*."""
        if not ids:
            return []
        coll = self._get_collection()
        try:
            cursor = coll.find({"_id": {"$in": list(ids)}}, _projection(projection))
            return [dict(doc) async for doc in cursor]
        except Exception as exc:
            raise self._translate(exc, "find_by_ids") from exc

    async def create(self, data: Document) -> Document:
        """Insert a new document and return it with the generated ``_id``."""
        coll = self._get_collection()
        doc = dict(data)
        try:
            result = await coll.insert_one(doc)
        except Exception as exc:
            raise self._translate(exc, "create") from exc
        doc["_id"] = result.inserted_id
        return doc

    async def update_one(self, filters: Document, patch: Document) -> Document | None:
        """Apply a partial ``$set`` update and return the updated document.

        An empty *patch* is a read: the current document is returned as-is.
        """
        _reject_operators(patch, self._collection_name, "update_one")
        if not patch:
            return await self._find_one(filters, "update_one")
        coll = self._get_collection()
        try:
            doc = await coll.find_one_and_update(
                filters,
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
            return dict(doc) if doc else None
        except Exception as exc:
            raise self._translate(exc, "update_one") from exc

    async def delete_one(self, filters: Document) -> Document | None:
        """Delete the first document matching *filters* and return it."""
        coll = self._get_collection()
        try:
            doc = await coll.find_one_and_delete(filters)
            return dict(doc) if doc else None
        except Exception as exc:
            raise self._translate(exc, "delete_one") from exc

    async def delete_many(self, filters: Document) -> int:
        """Delete every document matching *filters*; returns the deleted count."""
        coll = self._get_collection()
        try:
            result = await coll.delete_many(filters)
            return int(result.deleted_count)
        except Exception as exc:
            raise self._translate(exc, "delete_many") from exc

    async def add_to_list(self, id: Any, field: str, value: Any) -> bool:
        """``$addToSet`` *value* on *field*; returns False if no document matched."""
        return await self._update_list(id, {"$addToSet": {field: value}}, "add_to_list")

    async def remove_from_list(self, id: Any, field: str, value: Any) -> bool:
        """``$pull`` *value* from *field*; returns False if no document matched."""
        return await self._update_list(id, {"$pull": {field: value}}, "remove_from_list")

    async def _update_list(self, id: Any, update: Document, operation: str) -> bool:
        coll = self._get_collection()
        try:
            result = await coll.update_one({"_id": id}, update)
            return result.matched_count > 0
        except Exception as exc:
            raise self._translate(exc, operation) from exc

    async def ensure_unique_index(self, field: str) -> None:
        """Create a unique ascending index on *field* (no-op if it exists)."""
        coll = self._get_collection()
        try:
            await coll.create_index(field, unique=True)
        except Exception as exc:
            raise self._translate(exc, "ensure_unique_index") from exc
        logger.info("Unique index ensured on %s.%s", self._collection_name, field)

    def _translate(self, exc: Exception, operation: str) -> PersistenceError:
        """Map a raw driver exception to the persistence error hierarchy."""
        if _is_duplicate_key_error(exc):
            logger.error("Mongo %s failed for %s: duplicate key", operation, self._collection_name)
            return DuplicateEntityError(
                collection=self._collection_name,
                operation=operation,
                detail="A document with the same key already exists.",
                cause=exc,
            )
        if _is_connection_error(exc):
            logger.error(
                "Mongo %s connection error for %s: %s",
                operation,
                self._collection_name,
                type(exc).__name__,
                extra={"event": "store_connection_failed", "collection": self._collection_name},
            )
            return ConnectionFailedError(
                collection=self._collection_name,
                operation=operation,
                detail="Database connection failed.",
                cause=exc,
            )
        logger.error("Mongo %s failed for %s: %s", operation, self._collection_name, type(exc).__name__)
        if operation in _READ_OPERATIONS:
            return QueryError(
                collection=self._collection_name,
                operation=operation,
                detail="Query execution failed.",
                cause=exc,
            )
        return PersistenceError(
            collection=self._collection_name,
            operation=operation,
            detail="Write operation failed.",
            cause=exc,
        )


def _projection(fields: list[str] | None) -> dict[str, int] | None:
    if not fields:
        return None
    return {name: 1 for name in fields}


def _is_duplicate_key_error(exc: Exception) -> bool:
    """Check whether *exc* is a MongoDB duplicate-key error.

    Inspects the exception class name and the ``code`` attribute PyMongo sets
    on ``WriteError``/``DuplicateKeyError`` (11000).
    """
    if type(exc).__name__ == "DuplicateKeyError":
        return True
    return getattr(exc, "code", None) == 11000


def _is_connection_error(exc: Exception) -> bool:
    """Check whether *exc* indicates a connection-level failure.

    Detects PyMongo ``ConnectionFailure``, ``ServerSelectionTimeoutError`` and
    similar network-layer exceptions anywhere in the exception's MRO.
    """
    type_names = {cls.__name__ for cls in type(exc).__mro__}
    return bool(type_names & {"ConnectionFailure", "ServerSelectionTimeoutError", "AutoReconnect", "NetworkTimeout"})
