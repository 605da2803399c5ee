"""Archive endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fastapi_trackmark.archive import ArchiveMigrator
from fastapi_trackmark.config import TrackmarkConfig
from fastapi_trackmark.dependencies import (
    get_archive_views,
    get_config,
    get_migrator,
    get_page,
)
from fastapi_trackmark.schemas import (
    ArchivePage,
    ConfirmReceiptRequest,
    MessageResponse,
)
from fastapi_trackmark.views import ArchiveViewBuilder

router = APIRouter()


@router.get("/archives/{user_id}", response_model=ArchivePage)
async def list_archive(
    user_id: str,
    page: int = Depends(get_page),
    views: ArchiveViewBuilder = Depends(get_archive_views),
    config: TrackmarkConfig = Depends(get_config),
) -> ArchivePage:
    """Archived bookmarks in the order they were received."""
    return await views.build(user_id, page=page, limit=config.archive_page_size)


@router.post("/confirm-receipt", response_model=MessageResponse)
async def confirm_receipt(
    body: ConfirmReceiptRequest,
    migrator: ArchiveMigrator = Depends(get_migrator),
) -> MessageResponse:
    """Move a received bookmark into the archive."""
    await migrator.confirm_receipt(body.phone, body.track_number)
    return MessageResponse(message="Track received and archived successfully")
