"""Bookmark endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from fastapi_trackmark.bookmarks import add_bookmark, remove_bookmark
from fastapi_trackmark.config import TrackmarkConfig
from fastapi_trackmark.dependencies import (
    get_config,
    get_page,
    get_reconciler,
    get_users,
)
from fastapi_trackmark.protocols import UserRepository
from fastapi_trackmark.reconciler import BookmarkReconciler
from fastapi_trackmark.schemas import (
    BookmarkPage,
    BookmarkResponse,
    CreateBookmarkRequest,
    CreateBookmarkResponse,
    MessageResponse,
    ReconcileReport,
)
from fastapi_trackmark.views import build_bookmark_page

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Healthcheck endpoint for bookmark routes."""
    return {"status": "ok"}


@router.get("/bookmarks/{user_id}", response_model=BookmarkPage)
async def list_bookmarks(
    user_id: str,
    background_tasks: BackgroundTasks,
    page: int = Depends(get_page),
    reconciler: BookmarkReconciler = Depends(get_reconciler),
    config: TrackmarkConfig = Depends(get_config),
) -> BookmarkPage:
    """Reconciled bookmarks, ready for pickup first, newest first."""
    reconciliation = await reconciler.reconcile(user_id)
    if config.backfill_on_read and (
        reconciliation.backfills or reconciliation.claims
    ):
        background_tasks.add_task(reconciler.apply, reconciliation)
    return build_bookmark_page(
        reconciliation.items,
        page=page,
        limit=config.bookmarks_page_size,
        total=reconciliation.total,
    )


@router.post(
    "/{user_id}/bookmarks",
    response_model=CreateBookmarkResponse,
    status_code=201,
)
async def create_bookmark(
    user_id: str,
    body: CreateBookmarkRequest,
    users: UserRepository = Depends(get_users),
) -> CreateBookmarkResponse:
    """Attach a tracking number to the user's account."""
    bookmark = await add_bookmark(
        users,
        user_id,
        track_number=body.track_number,
        description=body.description,
    )
    return CreateBookmarkResponse(
        message="Bookmark created",
        bookmark=BookmarkResponse.from_bookmark(bookmark),
    )


@router.delete(
    "/{user_id}/bookmarks/{track_number}",
    response_model=MessageResponse,
)
async def delete_bookmark(
    user_id: str,
    track_number: str,
    users: UserRepository = Depends(get_users),
) -> MessageResponse:
    await remove_bookmark(users, user_id, track_number)
    return MessageResponse(message="Bookmark deleted")


@router.post("/{user_id}/bookmarks/reconcile", response_model=ReconcileReport)
async def reconcile_bookmarks(
    user_id: str,
    reconciler: BookmarkReconciler = Depends(get_reconciler),
) -> ReconcileReport:
    """Resolve every bookmark of the user and persist the backfills now."""
    reconciliation = await reconciler.reconcile(user_id)
    applied = await reconciler.apply(reconciliation)
    return ReconcileReport(
        resolved=[item.track_number for item in reconciliation.resolved],
        unresolved=[item.track_number for item in reconciliation.unresolved],
        backfilled=applied.backfilled,
        claimed=applied.claimed,
        failed=applied.failed,
    )
