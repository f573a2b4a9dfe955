"""Domain exceptions for the persistence layer.

Adapters catch driver exceptions (pymongo/motor) and re-raise them as one of
these so that route handlers never see raw database errors.
"""

from __future__ import annotations


class PersistenceError(Exception):
    """Base exception for all persistence-layer errors.

    Attributes:
        collection: The collection involved (e.g. ``"posts"``).
        operation: The store operation that failed (e.g. ``"create"``, ``"count"``).
        detail: A sanitised description of what went wrong.
    """

    def __init__(
        self,
        *,
        collection: str,
        operation: str,
        detail: str,
        cause: Exception | None = None,
    ) -> None:
        self.collection = collection
        self.operation = operation
        self.detail = detail
        msg = f"[{collection}] {operation} failed: {detail}"
        super().__init__(msg)
        if cause is not None:
            self.__cause__ = cause


class DuplicateEntityError(PersistenceError):
    """Raised when an insert or update violates a uniqueness constraint."""


class ConnectionFailedError(PersistenceError):
    """Raised when the adapter cannot reach the database."""


class QueryError(PersistenceError):
    """Raised for invalid queries or rejected filter expressions."""
