"""Collection routing — hands out one DocumentStore per collection name."""

from __future__ import annotations

from collections.abc import Callable

from quill_persistence.adapters.memory import InMemoryAdapter
from quill_persistence.adapters.mongo import MongoAdapter
from quill_persistence.connections import ConnectionManager
from quill_persistence.protocols import DocumentStore


class StoreRegistry:
    """Resolves collection names to configured DocumentStore instances.

    Stores are built once per collection by *factory* and cached.  Explicit
    overrides registered with :meth:`register` win over the factory.
    """

    def __init__(self, factory: Callable[[str], DocumentStore]) -> None:
        self._factory = factory
        self._stores: dict[str, DocumentStore] = {}

    @classmethod
    def for_mongo(cls, connection_manager: ConnectionManager, profile_name: str = "default") -> StoreRegistry:
        """Registry whose stores are Motor collections of *profile_name*'s database."""

        def _factory(name: str) -> DocumentStore:
            return MongoAdapter(name, database=connection_manager.get_mongo_database(profile_name))

        return cls(_factory)

    @classmethod
    def in_memory(cls) -> StoreRegistry:
        """Registry backed by :class:`InMemoryAdapter` collections."""
        return cls(InMemoryAdapter)

    def register(self, collection_name: str, store: DocumentStore) -> None:
        """Register a custom store for a collection."""
        self._stores[collection_name] = store

    def get(self, collection_name: str) -> DocumentStore:
        """Return the store for *collection_name*, creating it on first use."""
        if collection_name not in self._stores:
            self._stores[collection_name] = self._factory(collection_name)
        return self._stores[collection_name]
