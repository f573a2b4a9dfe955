"""Topic deduplication — maps a topic name to one stable topic id."""

from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId
from quill_persistence import DocumentStore, DuplicateEntityError

logger = logging.getLogger(__name__)


class TopicResolver:
    """Resolves topic names to ids, creating a topic on first use only.

    Relies on a unique index on ``topics.name`` (created at startup). The
    insert races are settled by the index: the loser of a concurrent first
    create gets ``DuplicateEntityError`` and re-reads the winner's document.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_or_create(self, name: str) -> ObjectId:
        """Return the id of the topic called *name*, creating it if absent."""
        existing = await self._store.find_one({"name": name})
        if existing is not None:
            return existing["_id"]

        try:
            created = await self._store.create({"name": name})
        except DuplicateEntityError:
            winner = await self._store.find_one({"name": name})
            if winner is None:
                raise
            logger.info("Topic %r created concurrently, reusing %s", name, winner["_id"])
            return winner["_id"]

        logger.info("Created topic %r as %s", name, created["_id"], extra={"event": "topic_created"})
        return created["_id"]

    async def exists(self, topic_id: Any) -> bool:
        """True when *topic_id* names an existing topic."""
        return await self._store.find_by_id(topic_id) is not None
