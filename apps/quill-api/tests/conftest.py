"""Shared fixtures for quill-api tests.

The app runs on :class:`StoreRegistry.in_memory`, so no MongoDB is needed.
Documents are seeded with ``asyncio.run`` against the same registry the app
uses.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest
from bson import ObjectId
from quill_api import ApiSettings, create_app
from quill_auth import AuthConfig, BearerConfig
from quill_persistence import StoreRegistry
from starlette.testclient import TestClient

SECRET = "api-test-secret-key-at-least-32-bytes-long!"
AUTHOR_ID = "65c20bf87454d893cab48638"
OTHER_ID = "65c20bf87454d893cab48639"


def make_token(user_id: str) -> str:
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    return jwt.encode({"sub": user_id, "exp": exp}, SECRET, algorithm="HS256")


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture(autouse=True)
def _quill_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set QUILL_ENV=test so auth config validators don't error."""
    monkeypatch.setenv("QUILL_ENV", "test")
    monkeypatch.delenv("QUILL_JWT_SECRET", raising=False)


@pytest.fixture()
def registry() -> StoreRegistry:
    return StoreRegistry.in_memory()


@pytest.fixture()
def settings() -> ApiSettings:
    return ApiSettings(max_docs_per_fetch=10)


@pytest.fixture()
def client(registry: StoreRegistry, settings: ApiSettings) -> Iterator[TestClient]:
    app = create_app(
        settings=settings,
        registry=registry,
        auth_config=AuthConfig(bearer=BearerConfig(secret_key=SECRET)),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def users(registry: StoreRegistry) -> dict[str, dict[str, Any]]:
    """Two provisioned users: ``ada`` (the usual author) and ``grace``."""
    store = registry.get("users")
    ada = asyncio.run(
        store.create({"_id": ObjectId(AUTHOR_ID), "username": "ada", "email": "ada@example.com", "posts": []})
    )
    grace = asyncio.run(
        store.create({"_id": ObjectId(OTHER_ID), "username": "grace", "email": "grace@example.com", "posts": []})
    )
    return {"ada": ada, "grace": grace}


@pytest.fixture()
def seed(registry: StoreRegistry):
    """Insert a document directly into a collection and return it."""

    def _seed(collection: str, doc: dict[str, Any]) -> dict[str, Any]:
        return asyncio.run(registry.get(collection).create(doc))

    return _seed


@pytest.fixture()
def fetch(registry: StoreRegistry):
    """Read a document straight from a collection, bypassing the API."""

    def _fetch(collection: str, filters: dict[str, Any]) -> dict[str, Any] | None:
        return asyncio.run(registry.get(collection).find_one(filters))

    return _fetch


@pytest.fixture()
def seed_posts(seed):
    """Insert *count* posts by ada with strictly increasing dates."""

    def _seed_posts(count: int, *, topic: ObjectId | None = None, author: str = AUTHOR_ID) -> list[dict[str, Any]]:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return [
            seed(
                "posts",
                {
                    "author": ObjectId(author),
                    "title": f"Post {i}",
                    "body": "Lorem ipsum dolor sit amet",
                    "topic": topic,
                    "date": base + timedelta(minutes=i),
                    "comments": [],
                },
            )
            for i in range(count)
        ]

    return _seed_posts


@pytest.fixture()
def author_headers() -> dict[str, str]:
    return auth_headers(AUTHOR_ID)


@pytest.fixture()
def other_headers() -> dict[str, str]:
    return auth_headers(OTHER_ID)


@pytest.fixture()
def headers_for():
    """Build bearer headers for an arbitrary ``sub`` claim."""
    return auth_headers
