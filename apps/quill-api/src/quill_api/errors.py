"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError as FastAPIValidationError
from fastapi.responses import JSONResponse
from quill_auth import AuthenticationError, OwnershipError
from quill_boundary import RequestValidationError
from quill_persistence import PersistenceError

logger = logging.getLogger(__name__)


class ResourceNotFound(Exception):
    """Raised when a requested document does not exist."""

    def __init__(self, resource: str, resource_id: Any) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} '{resource_id}' not found")


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"errors": exc.to_list()})


async def _request_model_error(request: Request, exc: FastAPIValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        errors.append(
            {
                "location": loc[0] if loc else "body",
                "field": ".".join(loc[1:]),
                "message": err.get("msg", "Invalid value"),
                "value": None,
            }
        )
    return JSONResponse(status_code=400, content={"errors": errors})


async def _not_found(request: Request, exc: ResourceNotFound) -> JSONResponse:
    logger.debug("Not found: %s", exc)
    return JSONResponse(status_code=404, content={"detail": "Not Found"})


async def _forbidden(request: Request, exc: OwnershipError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": "Forbidden"})


async def _unauthenticated(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(
        "Store failure on %s %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        extra={"event": "persistence_error", "collection": exc.collection, "operation": exc.operation},
    )
    return JSONResponse(status_code=500, content={"detail": "A database error has occurred"})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error to status code mapping on *app*."""
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(FastAPIValidationError, _request_model_error)
    app.add_exception_handler(ResourceNotFound, _not_found)
    app.add_exception_handler(OwnershipError, _forbidden)
    app.add_exception_handler(AuthenticationError, _unauthenticated)
    app.add_exception_handler(PersistenceError, _persistence_error)
