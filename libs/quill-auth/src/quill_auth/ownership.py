"""Ownership guard for author-owned resources."""

from __future__ import annotations

import logging
import re
from typing import Any

from quill_auth.context import UserContext
from quill_auth.errors import AuthenticationError, OwnershipError

logger = logging.getLogger(__name__)

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def normalize_user_id(user_id: Any) -> str:
    """Canonical string form of a user id; 24-hex ids compare case-insensitively."""
    value = str(user_id)
    if _OBJECT_ID_RE.match(value):
        return value.lower()
    return value


def is_owner(principal: UserContext, author_id: Any) -> bool:
    """True when *principal* is authenticated and its id matches *author_id*."""
    if not principal.is_authenticated or author_id is None:
        return False
    return normalize_user_id(principal.user_id) == normalize_user_id(author_id)


def ensure_owner(principal: UserContext, author_id: Any, *, resource: str = "post", resource_id: Any = "") -> None:
    """Raise unless *principal* owns the resource authored by *author_id*.

    Callers must have established that the resource exists; a missing
    resource is a not-found condition, never an ownership one.

    Raises:
        AuthenticationError: If *principal* is anonymous.
        OwnershipError: If *principal* is not the author.
    """
    if not principal.is_authenticated:
        raise AuthenticationError()
    if not is_owner(principal, author_id):
        logger.warning(
            "Ownership check failed: user_id=%s %s=%s",
            principal.user_id,
            resource,
            resource_id,
            extra={"event": "ownership_denied", "user_id": principal.user_id, "resource": resource},
        )
        raise OwnershipError(principal.user_id, resource, str(resource_id))
