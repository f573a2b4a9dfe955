"""Auth configuration loaded from .quill/auth.json."""

from __future__ import annotations

import json
import logging
import os
import secrets
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

_HMAC_ALGORITHMS = {"HS256", "HS384", "HS512"}
_DEV_ENVS = ("dev", "development", "test")


class BearerConfig(BaseModel):
    """JWT bearer token validation config.

    ``secret_key`` falls back to ``QUILL_JWT_SECRET`` when not given.
    """

    algorithm: str = "HS256"
    secret_key: str = ""
    public_key: str = ""
    issuer: str = ""
    audience: str = ""

    @model_validator(mode="after")
    def _check_keys(self) -> BearerConfig:
        if not self.secret_key:
            self.secret_key = os.environ.get("QUILL_JWT_SECRET", "")
        if self.algorithm in _HMAC_ALGORITHMS and not self.secret_key:
            env = os.environ.get("QUILL_ENV", "").lower()
            if env in _DEV_ENVS:
                logger.warning(
                    "BearerConfig.secret_key is empty for HMAC algorithm '%s'. "
                    "Auto-generating a random key for %s mode.",
                    self.algorithm,
                    env,
                )
                self.secret_key = secrets.token_urlsafe(32)
                return self
            raise ValueError(
                f"BearerConfig.secret_key must not be empty when using "
                f"HMAC algorithm '{self.algorithm}'. Set QUILL_JWT_SECRET or "
                f"switch to an asymmetric algorithm (e.g. RS256)."
            )
        if self.algorithm not in _HMAC_ALGORITHMS and not self.public_key:
            raise ValueError(
                f"BearerConfig.public_key must not be empty when using asymmetric algorithm '{self.algorithm}'."
            )
        return self


class AuthConfig(BaseModel):
    """Top-level auth configuration.

    ``public_paths`` never receive a principal lookup; every other path gets
    one attached, and individual routes decide whether it is required.
    """

    public_paths: list[str] = Field(default_factory=lambda: ["/health", "/docs", "/openapi.json"])
    bearer: BearerConfig = Field(default_factory=BearerConfig)

    @classmethod
    def from_file(cls, path: str | Path = ".quill/auth.json") -> AuthConfig:
        """Load config from a JSON file, falling back to defaults."""
        p = Path(path)
        if p.exists():
            data: dict[str, Any] = json.loads(p.read_text())
            return cls.model_validate(data)
        return cls()
