"""Comment endpoints, nested under their post. No ownership gate."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from quill_boundary import FieldChain, body, path, validate_request
from quill_persistence.protocols import Document

from quill_api.dependencies import Stores, get_settings, get_stores
from quill_api.errors import ResourceNotFound
from quill_api.paging import limit_chain, page_chain
from quill_api.serialization import serialize
from quill_api.settings import ApiSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts/{postid}/comments", tags=["comments"])


def _ids(*, with_comment: bool = False) -> list[FieldChain]:
    chains = [path("postid", "Post id must be valid").trim().is_object_id()]
    if with_comment:
        chains.append(path("commentid", "Comment id must be valid").trim().is_object_id())
    return chains


def _fields(*, partial: bool) -> list[FieldChain]:
    chains = [
        body("email", "Email must have correct format"),
        body("title", "Title must have correct length"),
        body("body", "Comment body must have correct length"),
    ]
    if partial:
        chains = [chain.optional() for chain in chains]
    email, title, text = chains
    return [
        email.trim().is_email().is_length(3, 100),
        title.trim().is_length(3, 100).escape(),
        text.trim().is_length(10, 280).escape(),
    ]


def _by_post(values: dict[str, Any]) -> Document:
    return {"post": values["postid"]}


def _one(values: dict[str, Any]) -> Document:
    return {"_id": values["commentid"], "post": values["postid"]}


@router.get("")
async def list_comments(
    postid: str,
    request: Request,
    stores: Stores = Depends(get_stores),
    settings: ApiSettings = Depends(get_settings),
) -> list[dict[str, Any]]:
    """Oldest comments first. 404 when the post does not exist."""
    values = await validate_request(
        [
            *_ids(),
            limit_chain(settings.max_docs_per_fetch),
            page_chain(stores.comments, settings.max_docs_per_fetch, _by_post),
        ],
        path={"postid": postid},
        query=request.query_params,
    )
    if await stores.posts.find_by_id(values["postid"]) is None:
        raise ResourceNotFound("post", values["postid"])

    window = values["page"]
    comments = await stores.comments.find(
        _by_post(values),
        sort=[("date", 1)],
        skip=window.skip,
        limit=window.limit,
    )
    return serialize(comments)


@router.get("/{commentid}")
async def get_comment(postid: str, commentid: str, stores: Stores = Depends(get_stores)) -> dict[str, Any]:
    values = await validate_request(_ids(with_comment=True), path={"postid": postid, "commentid": commentid})
    comment = await stores.comments.find_one(_one(values))
    if comment is None:
        raise ResourceNotFound("comment", values["commentid"])
    return serialize(comment)


@router.post("")
async def create_comment(
    postid: str,
    payload: dict[str, Any] | None = Body(default=None),
    stores: Stores = Depends(get_stores),
) -> dict[str, Any]:
    values = await validate_request([*_ids(), *_fields(partial=False)], path={"postid": postid}, body=payload)
    post_id = values["postid"]
    if await stores.posts.find_by_id(post_id) is None:
        raise ResourceNotFound("post", post_id)

    comment = await stores.comments.create(
        {
            "post": post_id,
            "email": values["email"],
            "title": values["title"],
            "body": values["body"],
            "date": datetime.now(timezone.utc),
        }
    )
    await stores.posts.add_to_list(post_id, "comments", comment["_id"])
    logger.info("Comment %s added to post %s", comment["_id"], post_id, extra={"event": "comment_created"})
    return serialize(comment)


@router.put("/{commentid}")
async def update_comment(
    postid: str,
    commentid: str,
    payload: dict[str, Any] | None = Body(default=None),
    stores: Stores = Depends(get_stores),
) -> dict[str, Any]:
    values = await validate_request(
        [*_ids(with_comment=True), *_fields(partial=True)],
        path={"postid": postid, "commentid": commentid},
        body=payload,
    )
    patch = {key: values[key] for key in ("email", "title", "body") if key in values}
    updated = await stores.comments.update_one(_one(values), patch)
    if updated is None:
        raise ResourceNotFound("comment", values["commentid"])
    return serialize(updated)


@router.delete("/{commentid}")
async def delete_comment(postid: str, commentid: str, stores: Stores = Depends(get_stores)) -> dict[str, Any]:
    values = await validate_request(_ids(with_comment=True), path={"postid": postid, "commentid": commentid})
    deleted = await stores.comments.delete_one(_one(values))
    if deleted is None:
        raise ResourceNotFound("comment", values["commentid"])
    await stores.posts.remove_from_list(values["postid"], "comments", deleted["_id"])
    logger.info("Comment %s deleted", deleted["_id"], extra={"event": "comment_deleted"})
    return serialize(deleted)
