"""Receipt confirmation: move a bookmark into the user's archive."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi_trackmark.bookmarks import find_bookmark
from fastapi_trackmark.exceptions import (
    BookmarkNotFoundError,
    ShipmentNotFoundError,
    UnresolvedBookmarkError,
    UserNotFoundError,
)
from fastapi_trackmark.protocols import (
    Bookmark,
    Shipment,
    ShipmentRepository,
    UserRepository,
)
from fastapi_trackmark.types import ArchiveSnapshot, snapshot_history

logger = logging.getLogger(__name__)


class ArchiveMigrator:
    """Archive a received shipment and drop the live bookmark.

    The archive entry keeps raw status references; text is resolved
    when the archive is viewed. The append and the removal are handed
    to ``UserRepository.archive_bookmark`` as a single atomic step.
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        shipments: ShipmentRepository,
        resolve_on_confirm: bool = False,
    ) -> None:
        self.users = users
        self.shipments = shipments
        self.resolve_on_confirm = resolve_on_confirm

    async def confirm_receipt(self, phone: str, track_number: str) -> ArchiveSnapshot:
        user = await self.users.get_by_phone(phone)
        if user is None:
            raise UserNotFoundError(phone)

        bookmark = find_bookmark(user.bookmarks, track_number)
        if bookmark is None:
            raise BookmarkNotFoundError(track_number)

        shipment = await self._linked_shipment(bookmark)
        entry = ArchiveSnapshot(
            description=bookmark.description,
            track_number=bookmark.track_number,
            history=snapshot_history(shipment.history),
            received_at=datetime.now(tz=UTC),
        )
        await self.users.archive_bookmark(str(user.id), bookmark.track_number, entry)
        logger.info(
            "Archived bookmark %s for user %s with %d history entries",
            bookmark.track_number,
            user.id,
            len(entry.history),
        )
        return entry

    async def _linked_shipment(self, bookmark: Bookmark) -> Shipment:
        if bookmark.track_id:
            shipment = await self.shipments.get_by_id(str(bookmark.track_id))
            if shipment is None:
                raise ShipmentNotFoundError(str(bookmark.track_id))
            return shipment

        if not self.resolve_on_confirm:
            raise UnresolvedBookmarkError(bookmark.track_number)

        shipment = await self.shipments.find_by_track_number(bookmark.track_number)
        if shipment is None:
            raise UnresolvedBookmarkError(bookmark.track_number)
        return shipment
