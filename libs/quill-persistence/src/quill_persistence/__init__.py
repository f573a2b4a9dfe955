"""Quill Persistence — document store access for the Quill blog backend."""

from quill_persistence.adapters.memory import InMemoryAdapter
from quill_persistence.adapters.mongo import MongoAdapter
from quill_persistence.connections import ConnectionManager, ConnectionProfile, InvalidConnectionURL
from quill_persistence.exceptions import (
    ConnectionFailedError,
    DuplicateEntityError,
    PersistenceError,
    QueryError,
)
from quill_persistence.pagination import (
    MAX_PAGE_LIMIT,
    PageWindow,
    clamp_limit,
    resolve_page_index,
    resolve_page_window,
)
from quill_persistence.protocols import DocumentStore
from quill_persistence.registry import StoreRegistry

__all__ = [
    "MAX_PAGE_LIMIT",
    "ConnectionFailedError",
    "ConnectionManager",
    "ConnectionProfile",
    "DocumentStore",
    "DuplicateEntityError",
    "InMemoryAdapter",
    "InvalidConnectionURL",
    "MongoAdapter",
    "PageWindow",
    "PersistenceError",
    "QueryError",
    "StoreRegistry",
    "clamp_limit",
    "resolve_page_index",
    "resolve_page_window",
]
