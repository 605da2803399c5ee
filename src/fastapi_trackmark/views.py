"""Paginated bookmark and archive views."""

from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence
from typing import TypeVar

from fastapi_trackmark.exceptions import UserNotFoundError
from fastapi_trackmark.history import StatusHistoryResolver
from fastapi_trackmark.protocols import ArchiveEntry, UserRepository
from fastapi_trackmark.schemas import (
    ArchiveEntryView,
    ArchivePage,
    BookmarkPage,
    BookmarkView,
)
from fastapi_trackmark.types import as_utc

T = TypeVar("T")


def total_pages(count: int, limit: int) -> int:
    return math.ceil(count / limit)


def page_slice(items: Sequence[T], *, page: int, limit: int) -> list[T]:
    """Items of 1-based ``page``: indices ``[(page - 1) * limit, page * limit)``."""
    skip = (max(page, 1) - 1) * limit
    return list(items[skip : skip + limit])


def order_bookmarks(items: Sequence[BookmarkView]) -> list[BookmarkView]:
    """Ready for pickup first, newest first within each group."""
    return sorted(
        items,
        key=lambda item: (item.ready_for_pickup, as_utc(item.created_at)),
        reverse=True,
    )


def build_bookmark_page(
    items: Sequence[BookmarkView],
    *,
    page: int,
    limit: int,
    total: int | None = None,
) -> BookmarkPage:
    """Order the reconciled bookmarks and cut out one page."""
    total = len(items) if total is None else total
    ordered = order_bookmarks(items)
    return BookmarkPage(
        items=page_slice(ordered, page=page, limit=limit),
        total_pages=total_pages(total, limit),
        total_bookmarks=total,
    )


class ArchiveViewBuilder:
    """Paginates a user's archive and resolves archived status text."""

    def __init__(
        self,
        *,
        users: UserRepository,
        history_resolver: StatusHistoryResolver,
    ) -> None:
        self.users = users
        self.history_resolver = history_resolver

    async def build(self, user_id: str, *, page: int, limit: int) -> ArchivePage:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        archive = list(user.archive)
        entries = await asyncio.gather(
            *(
                self._entry_view(entry)
                for entry in page_slice(archive, page=page, limit=limit)
            )
        )
        return ArchivePage(
            archive=list(entries),
            total_pages=total_pages(len(archive), limit),
            total_archives=len(archive),
        )

    async def _entry_view(self, entry: ArchiveEntry) -> ArchiveEntryView:
        history = []
        if entry.history:
            history = await self.history_resolver.resolve_archived(entry.history)
        return ArchiveEntryView(
            description=entry.description,
            track_number=entry.track_number,
            history=history,
            received_at=entry.received_at,
        )
