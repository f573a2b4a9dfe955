"""Tests for the topic deduplication resolver."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from quill_api.topics import TopicResolver
from quill_persistence import DuplicateEntityError, InMemoryAdapter


@pytest.fixture()
async def topics():
    store = InMemoryAdapter("topics")
    await store.ensure_unique_index("name")
    return store


async def test_same_name_returns_same_id(topics):
    resolver = TopicResolver(topics)
    first = await resolver.get_or_create("news")
    second = await resolver.get_or_create("news")
    assert first == second
    assert await topics.count() == 1


async def test_different_names_get_different_ids(topics):
    resolver = TopicResolver(topics)
    assert await resolver.get_or_create("news") != await resolver.get_or_create("sports")


async def test_conflict_rereads_the_winner():
    winner = {"_id": ObjectId(), "name": "news"}
    store = MagicMock()
    store.find_one = AsyncMock(side_effect=[None, winner])
    store.create = AsyncMock(side_effect=DuplicateEntityError(collection="topics", operation="create", detail="dup"))

    assert await TopicResolver(store).get_or_create("news") == winner["_id"]
    assert store.find_one.await_count == 2


async def test_conflict_without_winner_propagates():
    store = MagicMock()
    store.find_one = AsyncMock(return_value=None)
    store.create = AsyncMock(side_effect=DuplicateEntityError(collection="topics", operation="create", detail="dup"))

    with pytest.raises(DuplicateEntityError):
        await TopicResolver(store).get_or_create("news")


async def test_exists(topics):
    resolver = TopicResolver(topics)
    topic_id = await resolver.get_or_create("news")
    assert await resolver.exists(topic_id) is True
    assert await resolver.exists(ObjectId()) is False
