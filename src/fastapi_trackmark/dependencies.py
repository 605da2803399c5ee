"""Dependency providers for request handlers."""

from __future__ import annotations

from fastapi import Request

from fastapi_trackmark.archive import ArchiveMigrator
from fastapi_trackmark.config import TrackmarkConfig
from fastapi_trackmark.history import StatusHistoryResolver
from fastapi_trackmark.protocols import (
    ShipmentRepository,
    StatusRepository,
    UserRepository,
)
from fastapi_trackmark.reconciler import BookmarkReconciler
from fastapi_trackmark.views import ArchiveViewBuilder


def get_config(request: Request) -> TrackmarkConfig:
    """Read config from FastAPI app state."""
    return request.app.state.trackmark_config


def get_users(request: Request) -> UserRepository:
    """Read user repository from FastAPI app state."""
    return request.app.state.trackmark_users


def get_shipments(request: Request) -> ShipmentRepository:
    """Read shipment repository from FastAPI app state."""
    return request.app.state.trackmark_shipments


def get_statuses(request: Request) -> StatusRepository:
    """Read status repository from FastAPI app state."""
    return request.app.state.trackmark_statuses


def get_page(page: str | None = None) -> int:
    """1-based page number; missing, malformed or below 1 reads as 1."""
    try:
        return max(int(page), 1)
    except (TypeError, ValueError):
        return 1


def get_history_resolver(request: Request) -> StatusHistoryResolver:
    config = get_config(request)
    return StatusHistoryResolver(
        get_statuses(request), unknown_text=config.unknown_status_text
    )


def get_reconciler(request: Request) -> BookmarkReconciler:
    """Create BookmarkReconciler for the current request."""
    config = get_config(request)
    return BookmarkReconciler(
        users=get_users(request),
        shipments=get_shipments(request),
        history_resolver=get_history_resolver(request),
        ready_text=config.ready_for_pickup_text,
        ready_status_ids=config.ready_for_pickup_status_ids,
    )


def get_archive_views(request: Request) -> ArchiveViewBuilder:
    return ArchiveViewBuilder(
        users=get_users(request),
        history_resolver=get_history_resolver(request),
    )


def get_migrator(request: Request) -> ArchiveMigrator:
    """Create ArchiveMigrator for the current request."""
    config = get_config(request)
    return ArchiveMigrator(
        users=get_users(request),
        shipments=get_shipments(request),
        resolve_on_confirm=config.resolve_on_confirm,
    )
