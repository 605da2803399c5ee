"""Record and storage protocols consumed by the bookmark core."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from fastapi_trackmark.types import ArchiveSnapshot


class HistoryEntry(Protocol):
    status_id: str | None
    date: datetime


class Status(Protocol):
    id: str
    status_text: str


class Bookmark(Protocol):
    track_number: str
    track_id: str | None
    description: str
    created_at: datetime


class ArchiveEntry(Protocol):
    description: str
    track_number: str
    history: Sequence[Mapping[str, Any]]
    received_at: datetime


class User(Protocol):
    id: str
    phone: str
    bookmarks: Sequence[Bookmark]
    archive: Sequence[ArchiveEntry]


class Shipment(Protocol):
    id: str
    track_number: str
    status: str
    history: Sequence[HistoryEntry]
    price: str | None
    weight: str | None
    user: str | None
    created_at: datetime


@runtime_checkable
class UserRepository(Protocol):
    """Storage abstraction for users, their bookmarks and archive.

    Bookmark methods taking ``track_number`` match it with
    ``normalize_track_number``.
    """

    async def get_by_id(self, user_id: str) -> User | None: ...

    async def get_by_phone(self, phone: str) -> User | None: ...

    async def add_bookmark(
        self,
        user_id: str,
        *,
        track_number: str,
        description: str,
    ) -> Bookmark: ...

    async def remove_bookmark(self, user_id: str, track_number: str) -> bool: ...

    async def set_bookmark_track_id(
        self,
        user_id: str,
        track_number: str,
        track_id: str,
    ) -> None: ...

    async def archive_bookmark(
        self,
        user_id: str,
        track_number: str,
        entry: ArchiveSnapshot,
    ) -> None:
        """Append ``entry`` to the archive and drop the bookmark atomically.

        Raises BookmarkNotFoundError, with nothing archived, when the
        bookmark is already gone.
        """
        ...


@runtime_checkable
class ShipmentRepository(Protocol):
    """Read access to canonical shipment records."""

    async def get_by_id(self, shipment_id: str) -> Shipment | None: ...

    async def find_by_track_number(
        self, track_number: str
    ) -> Shipment | None: ...

    async def set_contact(self, shipment_id: str, contact: str) -> None: ...


@runtime_checkable
class StatusRepository(Protocol):
    """Read access to status reference data."""

    async def get_by_id(self, status_id: str) -> Status | None: ...
