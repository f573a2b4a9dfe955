"""Request-scoped access to the stores and settings on ``app.state``."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from quill_persistence import DocumentStore, StoreRegistry

from quill_api.settings import ApiSettings
from quill_api.topics import TopicResolver


@dataclass(frozen=True)
class Stores:
    """The four collections of the blog."""

    posts: DocumentStore
    comments: DocumentStore
    topics: DocumentStore
    users: DocumentStore

    @classmethod
    def from_registry(cls, registry: StoreRegistry) -> Stores:
        return cls(
            posts=registry.get("posts"),
            comments=registry.get("comments"),
            topics=registry.get("topics"),
            users=registry.get("users"),
        )

    @property
    def topic_resolver(self) -> TopicResolver:
        return TopicResolver(self.topics)


def get_stores(request: Request) -> Stores:
    return request.app.state.stores


def get_settings(request: Request) -> ApiSettings:
    return request.app.state.settings
