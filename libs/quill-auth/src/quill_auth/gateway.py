"""ASGI middleware that resolves the request principal from its bearer token.

Unlike a hard gate, the gateway never rejects: reads are public, so every
request continues with either an authenticated principal or
``ANONYMOUS_USER``. Mutating routes declare :func:`require_user` to turn an
anonymous principal into a 401.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from quill_auth.config import AuthConfig
from quill_auth.context import ANONYMOUS_USER, UserContext
from quill_auth.errors import AuthenticationError
from quill_auth.strategies.bearer import BearerStrategy

logger = logging.getLogger(__name__)

# Request state key for user context
USER_CONTEXT_KEY = "user_context"


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class AuthGateway(BaseHTTPMiddleware):
    """Starlette middleware that injects a ``UserContext`` into request state."""

    def __init__(self, app: Any, config: AuthConfig | None = None) -> None:
        super().__init__(app)
        self.config = config or AuthConfig()
        self._bearer = BearerStrategy(self.config.bearer)

    @staticmethod
    def _normalize_path(path: str) -> str:
        """Strip query and fragment, collapse ``//`` and drop a trailing slash."""
        while "//" in path:
            path = path.replace("//", "/")
        path = urlparse(path).path
        if path != "/":
            path = path.rstrip("/")
        return path

    def _is_public_path(self, path: str) -> bool:
        """Exact match after normalization; no wildcards."""
        normalized = self._normalize_path(path)
        return any(normalized == self._normalize_path(pattern) for pattern in self.config.public_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._is_public_path(request.url.path):
            request.state.user_context = ANONYMOUS_USER
            return await call_next(request)

        user_ctx = await self._bearer.authenticate(request)
        if user_ctx is None:
            if "authorization" in request.headers:
                logger.warning(
                    "Authentication failed: ip=%s path=%s method=%s",
                    _client_ip(request),
                    request.url.path,
                    request.method,
                    extra={"event": "auth_failed", "path": str(request.url.path)},
                )
            user_ctx = ANONYMOUS_USER
        else:
            logger.info(
                "Authentication successful: user_id=%s provider=%s path=%s",
                user_ctx.user_id,
                user_ctx.provider,
                request.url.path,
                extra={
                    "event": "auth_success",
                    "user_id": user_ctx.user_id,
                    "provider": user_ctx.provider,
                    "path": str(request.url.path),
                },
            )

        request.state.user_context = user_ctx
        return await call_next(request)


def get_user_context(request: Request) -> UserContext:
    """FastAPI dependency returning the request principal (may be anonymous).

    Usage:
        @router.get("/me")
        async def me(user: UserContext = Depends(get_user_context)):
            return user
    """
    ctx: UserContext | None = getattr(request.state, USER_CONTEXT_KEY, None)
    if ctx is None:
        return ANONYMOUS_USER
    return ctx


def require_user(request: Request) -> UserContext:
    """FastAPI dependency returning an authenticated principal.

    Raises:
        AuthenticationError: If the request carries no valid bearer token.
    """
    ctx = get_user_context(request)
    if not ctx.is_authenticated:
        raise AuthenticationError()
    return ctx
