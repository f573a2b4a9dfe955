"""API settings read once from the environment at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field


def _parse_cors_origins(raw: str) -> list[str]:
    """Split a comma separated origin list; empty means ``["*"]``."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


class ApiSettings(BaseModel):
    """Process-wide tunables for the Quill API.

    ``max_docs_per_fetch`` is both the default ``limit`` of list endpoints
    and the page size used to lay out pages.
    """

    mongo_url: str = "mongodb://localhost:27017"
    database_name: str = "quill"
    max_docs_per_fetch: int = Field(default=10, ge=1)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ApiSettings:
        """Build settings from ``QUILL_*`` environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        data: dict[str, object] = {}
        if env.get("QUILL_MONGODB_URI"):
            data["mongo_url"] = env["QUILL_MONGODB_URI"]
        if env.get("QUILL_MONGODB_DB"):
            data["database_name"] = env["QUILL_MONGODB_DB"]
        if env.get("QUILL_MAX_DOCS_PER_FETCH"):
            data["max_docs_per_fetch"] = env["QUILL_MAX_DOCS_PER_FETCH"].strip()
        if "QUILL_CORS_ORIGINS" in env:
            data["cors_origins"] = _parse_cors_origins(env["QUILL_CORS_ORIGINS"])
        return cls.model_validate(data)
