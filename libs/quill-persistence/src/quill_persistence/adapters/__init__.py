"""Document store adapters (MongoDB via Motor, in-memory)."""

from __future__ import annotations

from typing import Any

from quill_persistence.exceptions import QueryError

MAX_QUERY_LIMIT = 1000


def _validate_limit(limit: int | None) -> int | None:
    """Validate and clamp the *limit* parameter for query methods.

    ``None`` means "no limit" and ``0`` means "no documents".  Raises
    ``ValueError`` for negative values; values exceeding
    ``MAX_QUERY_LIMIT`` (1000) are silently capped.
    """
    if limit is None:
        return None
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    return min(limit, MAX_QUERY_LIMIT)


def _validate_offset(offset: int) -> int:
    """Validate the *offset* (skip) parameter for query methods.

    Raises ``ValueError`` for negative values.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    return offset


def _reject_operators(filters: dict[str, Any] | None, collection: str, operation: str) -> None:
    """Raise ``QueryError`` if any filter key (recursively) starts with ``$``.

    Filters are built from request input, so operator keys such as ``$ne`` or
    ``$regex`` smuggled in through a body or query string must never reach
    the driver.
    """

    def _check(obj: Any) -> None:
        if isinstance(obj, dict):
            for key in obj:
                if isinstance(key, str) and key.startswith("$"):
                    raise QueryError(
                        collection=collection,
                        operation=operation,
                        detail=f"Filter key '{key}' is not allowed: query operators are rejected.",
                    )
                _check(obj[key])
        elif isinstance(obj, list):
            for item in obj:
                _check(item)

    if filters:
        _check(filters)
