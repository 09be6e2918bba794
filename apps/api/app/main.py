"""FastAPI application for the live broadcast signaling relay."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse, Response

from .core.config import settings
from .core.logging_config import configure_logging
from .routers import pages as pages_router
from .routers import sessions as sessions_router
from .routers import signaling as signaling_router
from .services.coordinator import SessionCoordinator
from .services.registry import ConnectionRegistry
from .services.relay import MessageRelay
from .services.session_store import SessionStore, SqlSessionStore
from .services.signaling import SignalingGateway

logger = logging.getLogger(__name__)


def create_app(store: SessionStore | None = None) -> FastAPI:
    """Build the application; ``store`` replaces the database-backed store."""

    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        session_store = store
        if session_store is None:
            from .db.session import SessionLocal, init_models

            await init_models()
            session_store = SqlSessionStore(SessionLocal)

        registry = ConnectionRegistry()
        coordinator = SessionCoordinator(session_store, registry)
        app.state.coordinator = coordinator
        app.state.gateway = SignalingGateway(coordinator, MessageRelay(registry))
        logger.info("Signaling relay ready (env=%s)", settings.app_env)
        yield

    app = FastAPI(title="Live Broadcast Signaling", version="0.1.0", lifespan=lifespan)

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(sessions_router.router, prefix="/api", tags=["sessions"])
    app.include_router(signaling_router.router, tags=["signaling"])
    app.include_router(pages_router.router, tags=["pages"])

    @app.get("/", include_in_schema=False)
    async def index() -> RedirectResponse:
        return RedirectResponse(url="/admin")

    @app.get("/api/health", tags=["meta"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.head("/api/health", tags=["meta"])
    async def health_head() -> Response:
        return Response(status_code=200)

    return app


app = create_app()
