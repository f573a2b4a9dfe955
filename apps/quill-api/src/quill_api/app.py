"""FastAPI app factory — the composition shell for the Quill blog backend.

Wires together:
- ``quill-persistence`` for the document stores (Motor, or in-memory in tests)
- ``quill-auth`` for principal resolution on every request
- ``quill-boundary`` (through the routers) for request validation
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from quill_auth import AuthConfig, AuthGateway
from quill_persistence import ConnectionManager, ConnectionProfile, StoreRegistry

from quill_api.dependencies import Stores
from quill_api.errors import register_exception_handlers
from quill_api.routes import comments_router, posts_router
from quill_api.settings import ApiSettings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and close the Motor clients on shutdown."""
    # --- Startup -----------------------------------------------------------
    stores = Stores.from_registry(app.state.registry)
    await stores.topics.ensure_unique_index("name")
    app.state.stores = stores
    logger.info("Quill API ready (page size %d)", app.state.settings.max_docs_per_fetch)

    yield

    # --- Shutdown ----------------------------------------------------------
    conn_mgr: ConnectionManager | None = app.state.conn_mgr
    if conn_mgr is not None:
        await conn_mgr.close_all()


def create_app(
    settings: ApiSettings | None = None,
    registry: StoreRegistry | None = None,
    auth_config: AuthConfig | None = None,
) -> FastAPI:
    """Create and configure the Quill FastAPI application.

    Args:
        settings: Defaults to :meth:`ApiSettings.from_env`.
        registry: Store registry override. Without one, stores are Motor
            collections of ``settings.mongo_url``.
        auth_config: Defaults to ``.quill/auth.json`` (or built-in defaults).

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = settings or ApiSettings.from_env()

    conn_mgr: ConnectionManager | None = None
    if registry is None:
        profile = ConnectionProfile(url=settings.mongo_url, database=settings.database_name)
        conn_mgr = ConnectionManager({"default": profile})
        registry = StoreRegistry.for_mongo(conn_mgr)

    app = FastAPI(
        title="Quill API",
        description="Blog backend: posts, comments and topics",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.conn_mgr = conn_mgr

    # --- Auth middleware ---
    auth_config = auth_config or AuthConfig.from_file()
    public_paths = set(auth_config.public_paths) | {"/health"}
    auth_config = auth_config.model_copy(update={"public_paths": sorted(public_paths)})
    app.add_middleware(AuthGateway, config=auth_config)

    # --- CORS middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # --- Health endpoint (public, listed in public_paths) ---
    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Liveness plus a database ping when backed by MongoDB."""
        manager: ConnectionManager | None = request.app.state.conn_mgr
        database = await manager.ping() if manager is not None else True
        return {"status": "ok", "database": database}

    app.include_router(posts_router, prefix=settings.api_prefix)
    app.include_router(comments_router, prefix=settings.api_prefix)

    return app
