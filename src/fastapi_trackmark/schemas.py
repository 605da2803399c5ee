"""Pydantic request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes to camelCase, accepts both spellings on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryItem(CamelModel):
    status_id: str | None = None
    date: datetime
    status_text: str


class ShipmentDetails(CamelModel):
    id: str
    track_number: str
    status: str
    created_at: datetime

    @classmethod
    def from_shipment(cls, shipment: Any) -> ShipmentDetails:
        return cls(
            id=str(shipment.id),
            track_number=shipment.track_number,
            status=str(shipment.status),
            created_at=shipment.created_at,
        )


class ResolvedBookmark(CamelModel):
    kind: Literal["resolved"] = "resolved"
    track_number: str
    description: str
    track_id: str
    current_status: str
    track_details: ShipmentDetails
    history: list[HistoryItem]
    price: str | None = None
    weight: str | None = None
    ready_for_pickup: bool
    created_at: datetime


class UnresolvedBookmark(CamelModel):
    kind: Literal["unresolved"] = "unresolved"
    track_number: str
    description: str
    created_at: datetime
    ready_for_pickup: Literal[False] = False


BookmarkView = Annotated[
    ResolvedBookmark | UnresolvedBookmark,
    Field(discriminator="kind"),
]


class BookmarkPage(CamelModel):
    items: list[BookmarkView]
    total_pages: int
    total_bookmarks: int


class ArchiveEntryView(CamelModel):
    description: str
    track_number: str
    history: list[HistoryItem]
    received_at: datetime


class ArchivePage(CamelModel):
    archive: list[ArchiveEntryView]
    total_pages: int
    total_archives: int


class CreateBookmarkRequest(CamelModel):
    track_number: str = Field(min_length=1)
    description: str = ""


class BookmarkResponse(CamelModel):
    track_number: str
    description: str
    track_id: str | None = None
    created_at: datetime

    @classmethod
    def from_bookmark(cls, bookmark: Any) -> BookmarkResponse:
        return cls(
            track_number=bookmark.track_number,
            description=bookmark.description,
            track_id=(
                str(bookmark.track_id) if bookmark.track_id is not None else None
            ),
            created_at=bookmark.created_at,
        )


class CreateBookmarkResponse(CamelModel):
    message: str
    bookmark: BookmarkResponse


class ConfirmReceiptRequest(CamelModel):
    phone: str = Field(min_length=1)
    track_number: str = Field(min_length=1)


class MessageResponse(CamelModel):
    message: str


class ReconcileReport(CamelModel):
    resolved: list[str]
    unresolved: list[str]
    backfilled: int
    claimed: int
    failed: int
