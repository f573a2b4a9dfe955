"""Quill API — FastAPI composition shell for the blog backend.

Wires together libs (quill-persistence, quill-boundary, quill-auth) into a
servable FastAPI application. Domain rules live in the routers and libs;
this package only composes them.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from quill_api.app import create_app
from quill_api.settings import ApiSettings

__all__ = ["ApiSettings", "create_app", "get_app"]

_app: FastAPI | None = None


def get_app() -> FastAPI:
    """Return the module-level app singleton (created on first call).

    Deferred so that import alone does not trigger config validation.
    ``uvicorn quill_api:app`` still works because uvicorn resolves the
    attribute at runtime, which invokes ``__getattr__``.
    """
    global _app  # noqa: PLW0603
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> Any:
    """Module-level ``__getattr__`` so ``uvicorn quill_api:app`` works."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
