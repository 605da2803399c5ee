"""Router factory for fastapi-trackmark."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from fastapi_trackmark.config import TrackmarkConfig
from fastapi_trackmark.exceptions import register_exception_handlers
from fastapi_trackmark.protocols import (
    ShipmentRepository,
    StatusRepository,
    UserRepository,
)
from fastapi_trackmark.routes.archives import router as archives_router
from fastapi_trackmark.routes.bookmarks import router as bookmarks_router


def create_bookmarks_router(
    *,
    users: UserRepository,
    shipments: ShipmentRepository,
    statuses: StatusRepository,
    config: TrackmarkConfig | None = None,
) -> APIRouter:
    """Create a configured API router."""
    actual_config = config or TrackmarkConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.trackmark_config = actual_config
        app.state.trackmark_users = users
        app.state.trackmark_shipments = shipments
        app.state.trackmark_statuses = statuses
        register_exception_handlers(app)
        yield

    router = APIRouter(lifespan=lifespan)
    router.include_router(bookmarks_router)
    router.include_router(archives_router)
    return router
