"""Post endpoints.

Reads are public. Creating a post needs an authenticated principal, and
updating or deleting one needs its author. Existence is checked before
ownership, so a missing post is a 404 for everybody.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, Request
from quill_auth import UserContext, ensure_owner, get_user_context, require_user
from quill_boundary import FieldChain, StepError, ValidationContext, body, is_object_id, path, query, validate_request
from quill_persistence.protocols import Document

from quill_api.dependencies import Stores, get_settings, get_stores
from quill_api.errors import ResourceNotFound
from quill_api.paging import SANITIZATION_ERROR, limit_chain, page_chain
from quill_api.serialization import serialize
from quill_api.settings import ApiSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

TITLE_MESSAGE = "Title must have correct length"
BODY_MESSAGE = "Post body must have correct length"
POST_ID_MESSAGE = "Post id must be valid"


def author_ref(user_id: str) -> ObjectId | str:
    """Stored form of a principal id: an ``ObjectId`` when it looks like one."""
    return ObjectId(user_id) if is_object_id(user_id) else user_id


def _post_id_chain() -> FieldChain:
    return path("postid", POST_ID_MESSAGE).trim().is_object_id()


def _list_filter(values: dict[str, Any]) -> Document:
    filters: Document = {}
    if "topic" in values:
        filters["topic"] = values["topic"]
    if "userid" in values:
        filters["author"] = values["userid"]
    return filters


async def _expand(stores: Stores, posts: list[Document], *, with_comments: bool = False) -> list[Document]:
    """Replace author and topic references (and optionally comments) with documents.

    Authors are reduced to their username. A dangling reference expands to
    ``None``.
    """
    author_ids = list(dict.fromkeys(p["author"] for p in posts if p.get("author") is not None))
    topic_ids = list(dict.fromkeys(p["topic"] for p in posts if p.get("topic") is not None))
    authors = {u["_id"]: u for u in await stores.users.find_by_ids(author_ids, projection=["username"])}
    topics = {t["_id"]: t for t in await stores.topics.find_by_ids(topic_ids, projection=["name"])}

    expanded = []
    for post in posts:
        item = dict(post)
        item["author"] = authors.get(post.get("author"))
        item["topic"] = topics.get(post.get("topic"))
        if with_comments:
            comment_ids = post.get("comments", [])
            found = {c["_id"]: c for c in await stores.comments.find_by_ids(comment_ids)}
            item["comments"] = [found[cid] for cid in comment_ids if cid in found]
        expanded.append(item)
    return expanded


async def _existing_post(stores: Stores, post_id: ObjectId) -> Document:
    post = await stores.posts.find_by_id(post_id)
    if post is None:
        raise ResourceNotFound("post", post_id)
    return post


@router.get("")
async def list_posts(
    request: Request,
    stores: Stores = Depends(get_stores),
    settings: ApiSettings = Depends(get_settings),
) -> list[dict[str, Any]]:
    """Newest posts first, optionally filtered by ``topic`` id and ``userid``."""
    values = await validate_request(
        [
            limit_chain(settings.max_docs_per_fetch),
            query("topic", "Topic id must be valid").optional().trim().is_object_id(),
            query("userid", "User id must be valid").optional().trim().is_object_id(),
            page_chain(stores.posts, settings.max_docs_per_fetch, _list_filter),
        ],
        query=request.query_params,
    )
    window = values["page"]
    posts = await stores.posts.find(
        _list_filter(values),
        sort=[("date", -1)],
        skip=window.skip,
        limit=window.limit,
    )
    return serialize(await _expand(stores, posts))


@router.get("/{postid}")
async def get_post(postid: str, stores: Stores = Depends(get_stores)) -> dict[str, Any]:
    values = await validate_request([_post_id_chain()], path={"postid": postid})
    post = await _existing_post(stores, values["postid"])
    [expanded] = await _expand(stores, [post], with_comments=True)
    return serialize(expanded)


@router.post("")
async def create_post(
    payload: dict[str, Any] | None = Body(default=None),
    principal: UserContext = Depends(require_user),
    stores: Stores = Depends(get_stores),
) -> dict[str, Any]:
    """Create a post authored by the principal under a topic given by name."""
    resolver = stores.topic_resolver

    async def resolve_topic(name: str, ctx: ValidationContext) -> ObjectId:
        # Topics are only created for otherwise valid posts.
        if ctx.has_errors:
            raise StepError(SANITIZATION_ERROR)
        return await resolver.get_or_create(name)

    values = await validate_request(
        [
            body("title", TITLE_MESSAGE).trim().is_length(3, 100).escape(),
            body("body", BODY_MESSAGE).trim().is_length(3, 10000).escape(),
            body("topic", "Topic must have correct length").trim().is_length(1, 50).escape().sanitize(resolve_topic),
        ],
        body=payload,
    )

    author = author_ref(principal.user_id)
    post = await stores.posts.create(
        {
            "author": author,
            "title": values["title"],
            "body": values["body"],
            "topic": values["topic"],
            "date": datetime.now(timezone.utc),
            "comments": [],
        }
    )
    if not await stores.users.add_to_list(author, "posts", post["_id"]):
        logger.warning(
            "Post %s created for unknown user %s",
            post["_id"],
            author,
            extra={"event": "author_missing", "user_id": principal.user_id},
        )
    logger.info("Post %s created by %s", post["_id"], author, extra={"event": "post_created"})
    return serialize(post)


@router.put("/{postid}")
async def update_post(
    postid: str,
    payload: dict[str, Any] | None = Body(default=None),
    principal: UserContext = Depends(get_user_context),
    stores: Stores = Depends(get_stores),
) -> dict[str, Any]:
    """Apply the fields present in the body; ``topic`` must be an existing topic id."""
    resolver = stores.topic_resolver

    async def topic_exists(topic_id: ObjectId, _ctx: ValidationContext) -> bool:
        return await resolver.exists(topic_id)

    values = await validate_request(
        [
            _post_id_chain(),
            body("title", TITLE_MESSAGE).optional().trim().is_length(3, 100).escape(),
            body("body", BODY_MESSAGE).optional().trim().is_length(3, 10000).escape(),
            body("topic", "Topic id must be valid")
            .optional()
            .trim()
            .is_object_id()
            .check(topic_exists, message="Topic must exist"),
        ],
        path={"postid": postid},
        body=payload,
    )
    post_id = values["postid"]
    post = await _existing_post(stores, post_id)
    ensure_owner(principal, post.get("author"), resource="post", resource_id=post_id)

    patch = {key: values[key] for key in ("title", "body", "topic") if key in values}
    updated = await stores.posts.update_one({"_id": post_id}, patch)
    if updated is None:
        raise ResourceNotFound("post", post_id)
    return serialize(updated)


@router.delete("/{postid}")
async def delete_post(
    postid: str,
    principal: UserContext = Depends(get_user_context),
    stores: Stores = Depends(get_stores),
) -> dict[str, Any]:
    """Delete a post with its comments and unlink it from its author."""
    values = await validate_request([_post_id_chain()], path={"postid": postid})
    post_id = values["postid"]
    post = await _existing_post(stores, post_id)
    ensure_owner(principal, post.get("author"), resource="post", resource_id=post_id)

    deleted = await stores.posts.delete_one({"_id": post_id})
    if deleted is None:
        raise ResourceNotFound("post", post_id)
    removed = await stores.comments.delete_many({"post": post_id})
    await stores.users.remove_from_list(deleted["author"], "posts", post_id)
    logger.info(
        "Post %s deleted with %d comment(s)",
        post_id,
        removed,
        extra={"event": "post_deleted", "user_id": principal.user_id},
    )
    return serialize(deleted)
