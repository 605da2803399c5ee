"""FastAPI shipment bookmarks public API."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "ArchiveMigrator",
    "BookmarkReconciler",
    "ShipmentRepository",
    "StatusHistoryResolver",
    "StatusRepository",
    "TrackmarkConfig",
    "UserRepository",
    "__version__",
    "create_bookmarks_router",
    "register_exception_handlers",
]

if TYPE_CHECKING:
    from fastapi_trackmark.archive import ArchiveMigrator
    from fastapi_trackmark.config import TrackmarkConfig
    from fastapi_trackmark.exceptions import register_exception_handlers
    from fastapi_trackmark.history import StatusHistoryResolver
    from fastapi_trackmark.protocols import (
        ShipmentRepository,
        StatusRepository,
        UserRepository,
    )
    from fastapi_trackmark.reconciler import BookmarkReconciler
    from fastapi_trackmark.router import create_bookmarks_router


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    if name == "TrackmarkConfig":
        from fastapi_trackmark.config import TrackmarkConfig

        return TrackmarkConfig
    if name == "create_bookmarks_router":
        from fastapi_trackmark.router import create_bookmarks_router

        return create_bookmarks_router
    if name == "register_exception_handlers":
        from fastapi_trackmark.exceptions import register_exception_handlers

        return register_exception_handlers
    if name == "BookmarkReconciler":
        from fastapi_trackmark.reconciler import BookmarkReconciler

        return BookmarkReconciler
    if name == "ArchiveMigrator":
        from fastapi_trackmark.archive import ArchiveMigrator

        return ArchiveMigrator
    if name == "StatusHistoryResolver":
        from fastapi_trackmark.history import StatusHistoryResolver

        return StatusHistoryResolver
    if name in ("ShipmentRepository", "StatusRepository", "UserRepository"):
        from fastapi_trackmark import protocols

        return getattr(protocols, name)
    raise AttributeError(
        f"module 'fastapi_trackmark' has no attribute {name!r}"
    )
