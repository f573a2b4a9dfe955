"""DocumentStore protocol — the store primitives the blog handlers rely on."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

Document = dict[str, Any]
SortSpec = list[tuple[str, int]]


@runtime_checkable
class DocumentStore(Protocol):
    """Async interface over one document collection.

    Both the Motor adapter and the in-memory adapter implement this protocol,
    so handlers and resolvers can be exercised without a running MongoDB.
    Filters are plain equality maps; ``$``-prefixed operator keys are rejected.
    """

    @property
    def collection_name(self) -> str: ...

    async def find(
        self,
        filters: Document | None = None,
        *,
        projection: list[str] | None = None,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Document]:
        """Return documents matching *filters*. ``limit=0`` returns nothing."""
        ...

    async def count(self, filters: Document | None = None) -> int:
        """Count documents matching *filters*."""
        ...

    async def find_by_id(self, id: Any) -> Document | None:
        """Retrieve a single document by ``_id``."""
        ...

    async def find_by_ids(self, ids: list[Any], *, projection: list[str] | None = None) -> list[Document]:
        """Retrieve every document whose ``_id`` is in *ids* (order not guaranteed)."""
        ...

    async def find_one(self, filters: Document) -> Document | None:
        """Retrieve the first document matching *filters*."""
        ...

    async def create(self, data: Document) -> Document:
        """Insert a document and return it with its ``_id`` set."""
        ...

    async def update_one(self, filters: Document, patch: Document) -> Document | None:
        """``$set`` *patch* on the first match and return the updated document."""
        ...

    async def delete_one(self, filters: Document) -> Document | None:
        """Delete the first match and return the deleted document."""
        ...

    async def delete_many(self, filters: Document) -> int:
        """Delete every match and return the deleted count."""
        ...

    async def add_to_list(self, id: Any, field: str, value: Any) -> bool:
        """Append *value* to the list *field* unless already present (idempotent)."""
        ...

    async def remove_from_list(self, id: Any, field: str, value: Any) -> bool:
        """Remove every occurrence of *value* from the list *field*."""
        ...

    async def ensure_unique_index(self, field: str) -> None:
        """Create a unique index on *field* if it does not exist."""
        ...
