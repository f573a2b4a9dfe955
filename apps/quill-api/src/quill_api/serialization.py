"""Document to JSON conversion.

``_id`` is renamed to ``id`` at every nesting level, ``ObjectId`` values
become hex strings and datetimes ISO 8601 strings.
"""

from __future__ import annotations

from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder


def _rename_ids(value: Any) -> Any:
    if isinstance(value, dict):
        return {("id" if key == "_id" else key): _rename_ids(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_rename_ids(item) for item in value]
    return value


def serialize(value: Any) -> Any:
    """Return a JSON-ready copy of a document, a list of documents, or ``None``."""
    return jsonable_encoder(_rename_ids(value), custom_encoder={ObjectId: str})
