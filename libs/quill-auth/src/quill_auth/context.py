"""Principal model attached to every request."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UserContext(BaseModel):
    """Authenticated user identity available throughout the request lifecycle."""

    user_id: str
    provider: str = "unknown"
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def __repr__(self) -> str:
        return f"UserContext(user_id={self.user_id!r}, provider={self.provider!r})"


ANONYMOUS_USER = UserContext(user_id="", provider="anonymous")
