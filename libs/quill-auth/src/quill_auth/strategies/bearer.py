"""JWT bearer token validation strategy."""

from __future__ import annotations

import logging
from typing import Any

import jwt
from starlette.requests import Request

from quill_auth.config import BearerConfig
from quill_auth.context import UserContext

logger = logging.getLogger(__name__)

# Claims that must be present in every JWT.
_REQUIRED_CLAIMS = ("sub", "exp")

# Safe claim keys forwarded to metadata (excludes the full payload).
_SAFE_METADATA_CLAIMS = frozenset({"iss", "aud", "iat", "exp", "jti", "nbf"})


class BearerStrategy:
    """Validates JWT bearer tokens and extracts the principal."""

    def __init__(self, config: BearerConfig) -> None:
        self.config = config

    def _get_signing_key(self) -> str:
        if self.config.public_key:
            return self.config.public_key
        return self.config.secret_key

    async def authenticate(self, request: Request) -> UserContext | None:
        """Extract and validate a JWT from the Authorization header.

        Returns ``None`` when no bearer token is present or the token is
        invalid; the gateway then attaches the anonymous principal.
        """
        auth_header = request.headers.get("authorization", "")
        if not auth_header[:7].lower() == "bearer " or len(auth_header) <= 7:
            return None
        return self.validate_token(auth_header[7:].strip())

    def validate_token(self, token: str) -> UserContext | None:
        """Decode and validate a JWT, returning a ``UserContext`` on success.

        The signature is checked against the configured key and algorithm,
        ``iss``/``aud`` are checked when configured, and ``sub`` and ``exp``
        are required. ``sub`` becomes the principal's ``user_id``.

        Returns ``None`` for any invalid, expired, or incomplete token.
        """
        try:
            decode_opts: dict[str, Any] = {
                "algorithms": [self.config.algorithm],
                "options": {"require": list(_REQUIRED_CLAIMS)},
            }
            if self.config.issuer:
                decode_opts["issuer"] = self.config.issuer
            if self.config.audience:
                decode_opts["audience"] = self.config.audience

            payload = jwt.decode(token, self._get_signing_key(), **decode_opts)
        except jwt.ExpiredSignatureError:
            logger.warning(
                "Token validation failed: reason=expired",
                extra={"event": "token_validation_failed", "reason": "expired"},
            )
            return None
        except jwt.PyJWTError as exc:
            logger.warning(
                "Token validation failed: reason=%s",
                type(exc).__name__,
                extra={"event": "token_validation_failed", "reason": type(exc).__name__},
            )
            return None

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            logger.warning(
                "JWT 'sub' claim is empty or not a string",
                extra={"event": "token_validation_failed", "reason": "invalid_sub"},
            )
            return None

        logger.debug("Bearer token validated: user_id=%s", sub, extra={"event": "token_validated", "user_id": sub})
        return UserContext(
            user_id=sub.strip(),
            provider="bearer",
            metadata={k: v for k, v in payload.items() if k in _SAFE_METADATA_CLAIMS},
        )
