"""Quill Auth — bearer token principal resolution and ownership checks."""

from quill_auth.config import AuthConfig, BearerConfig
from quill_auth.context import ANONYMOUS_USER, UserContext
from quill_auth.errors import AuthenticationError, OwnershipError
from quill_auth.gateway import AuthGateway, get_user_context, require_user
from quill_auth.ownership import ensure_owner, is_owner, normalize_user_id
from quill_auth.strategies.bearer import BearerStrategy

__all__ = [
    "ANONYMOUS_USER",
    "AuthConfig",
    "AuthGateway",
    "AuthenticationError",
    "BearerConfig",
    "BearerStrategy",
    "OwnershipError",
    "UserContext",
    "ensure_owner",
    "get_user_context",
    "is_owner",
    "normalize_user_id",
    "require_user",
]
