"""SQLAlchemy repository implementations."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fastapi_trackmark.contrib.sqlalchemy.models import (
    ArchiveEntryModel,
    BookmarkModel,
    HistoryEntryModel,
    ShipmentModel,
    StatusModel,
    UserModel,
)
from fastapi_trackmark.exceptions import (
    ArchiveConsistencyError,
    BookmarkNotFoundError,
    DuplicateBookmarkError,
    ShipmentNotFoundError,
    StorageError,
)
from fastapi_trackmark.types import ArchiveSnapshot, normalize_track_number


@asynccontextmanager
async def _storage_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StorageError(f"{action} failed") from e


class SQLAlchemyUserRepository:
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, user_id: str) -> UserModel | None:
        async with _storage_errors(f"Loading user {user_id}"):
            async with self.session_factory() as session:
                result = await session.execute(
                    select(UserModel).where(UserModel.id == user_id)
                )
                return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str) -> UserModel | None:
        async with _storage_errors("Loading user by phone"):
            async with self.session_factory() as session:
                result = await session.execute(
                    select(UserModel).where(UserModel.phone == phone)
                )
                return result.scalar_one_or_none()

    async def create(self, *, phone: str, id: str | None = None) -> UserModel:
        user = UserModel(id=id or str(uuid.uuid4()), phone=phone)
        async with _storage_errors("Creating user"):
            async with self.session_factory() as session:
                session.add(user)
                await session.commit()
                await session.refresh(user)
        return user

    async def add_bookmark(
        self,
        user_id: str,
        *,
        track_number: str,
        description: str,
    ) -> BookmarkModel:
        bookmark = BookmarkModel(
            user_id=user_id,
            track_number=track_number,
            description=description,
        )
        async with _storage_errors(f"Adding bookmark for user {user_id}"):
            async with self.session_factory() as session:
                session.add(bookmark)
                try:
                    await session.commit()
                except IntegrityError as e:
                    raise DuplicateBookmarkError(track_number) from e
                await session.refresh(bookmark)
        return bookmark

    async def remove_bookmark(self, user_id: str, track_number: str) -> bool:
        async with _storage_errors(f"Removing bookmark for user {user_id}"):
            async with self.session_factory() as session:
                result = await session.execute(
                    delete(BookmarkModel).where(
                        BookmarkModel.user_id == user_id,
                        BookmarkModel.track_key
                        == normalize_track_number(track_number),
                    )
                )
                await session.commit()
                return result.rowcount > 0

    async def set_bookmark_track_id(
        self, user_id: str, track_number: str, track_id: str
    ) -> None:
        async with _storage_errors(f"Backfilling bookmark for user {user_id}"):
            async with self.session_factory() as session:
                result = await session.execute(
                    select(BookmarkModel).where(
                        BookmarkModel.user_id == user_id,
                        BookmarkModel.track_key
                        == normalize_track_number(track_number),
                    )
                )
                bookmark = result.scalar_one_or_none()
                # Removed in the meantime: nothing left to cache on.
                if bookmark is None or bookmark.track_id == track_id:
                    return
                bookmark.track_id = track_id
                await session.commit()

    async def archive_bookmark(
        self, user_id: str, track_number: str, entry: ArchiveSnapshot
    ) -> None:
        """Insert the archive entry and delete the bookmark in one transaction."""
        async with _storage_errors(f"Archiving bookmark for user {user_id}"):
            async with self.session_factory() as session, session.begin():
                session.add(
                    ArchiveEntryModel(
                        user_id=user_id,
                        description=entry.description,
                        track_number=entry.track_number,
                        history=list(entry.history),
                        received_at=entry.received_at,
                    )
                )
                result = await session.execute(
                    delete(BookmarkModel).where(
                        BookmarkModel.user_id == user_id,
                        BookmarkModel.track_key
                        == normalize_track_number(track_number),
                    )
                )
                # Raising inside begin() rolls the archive insert back.
                if result.rowcount == 0:
                    raise BookmarkNotFoundError(track_number)
                if result.rowcount != 1:
                    raise ArchiveConsistencyError(
                        f"Bookmark {track_number} of user {user_id} was not "
                        f"removed ({result.rowcount} rows), archive rolled back"
                    )


class SQLAlchemyShipmentRepository:
    """Shipment repository backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, shipment_id: str) -> ShipmentModel | None:
        async with _storage_errors(f"Loading shipment {shipment_id}"):
            async with self.session_factory() as session:
                result = await session.execute(
                    select(ShipmentModel).where(ShipmentModel.id == shipment_id)
                )
                return result.scalar_one_or_none()

    async def find_by_track_number(
        self, track_number: str
    ) -> ShipmentModel | None:
        """Exact match on the normalized tracking number; oldest wins."""
        async with _storage_errors("Looking up shipment by track number"):
            async with self.session_factory() as session:
                result = await session.execute(
                    select(ShipmentModel)
                    .where(
                        ShipmentModel.track_key
                        == normalize_track_number(track_number)
                    )
                    .order_by(ShipmentModel.created_at.asc())
                    .limit(1)
                )
                return result.scalars().first()

    async def set_contact(self, shipment_id: str, contact: str) -> None:
        async with _storage_errors(f"Updating shipment {shipment_id}"):
            async with self.session_factory() as session:
                shipment = await session.get(ShipmentModel, shipment_id)
                if shipment is None:
                    raise ShipmentNotFoundError(shipment_id)
                shipment.user = contact
                await session.commit()

    async def create(
        self,
        *,
        track_number: str,
        history: Iterable[Mapping[str, Any]] = (),
        **kwargs,
    ) -> ShipmentModel:
        """Create a shipment; ``history`` items carry ``status_id``/``date``."""
        shipment_id = kwargs.get("id") or str(uuid.uuid4())
        shipment = ShipmentModel(
            id=shipment_id,
            track_number=track_number,
            status=str(kwargs.get("status", "")),
            price=kwargs.get("price"),
            weight=kwargs.get("weight"),
            user=kwargs.get("user"),
        )
        if kwargs.get("created_at") is not None:
            shipment.created_at = kwargs["created_at"]
        shipment.history = [
            HistoryEntryModel(status_id=item.get("status_id"), date=item["date"])
            for item in history
        ]
        async with _storage_errors("Creating shipment"):
            async with self.session_factory() as session:
                session.add(shipment)
                await session.commit()
                await session.refresh(shipment)
        return shipment

    async def add_history(
        self,
        shipment_id: str,
        status_id: str | None,
        date: datetime,
        *,
        status: str | None = None,
    ) -> ShipmentModel:
        """Append a history entry, optionally updating the current status."""
        async with _storage_errors(f"Updating shipment {shipment_id}"):
            async with self.session_factory() as session:
                shipment = await session.get(ShipmentModel, shipment_id)
                if shipment is None:
                    raise ShipmentNotFoundError(shipment_id)
                session.add(
                    HistoryEntryModel(
                        shipment_id=shipment_id, status_id=status_id, date=date
                    )
                )
                if status is not None:
                    shipment.status = status
                await session.commit()
                await session.refresh(shipment)
        return shipment


class SQLAlchemyStatusRepository:
    """Status reference data backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, status_id: str) -> StatusModel | None:
        async with _storage_errors(f"Loading status {status_id}"):
            async with self.session_factory() as session:
                return await session.get(StatusModel, status_id)

    async def create(self, status_text: str, *, id: str | None = None) -> StatusModel:
        status = StatusModel(id=id or str(uuid.uuid4()), status_text=status_text)
        async with _storage_errors("Creating status"):
            async with self.session_factory() as session:
                session.add(status)
                await session.commit()
                await session.refresh(status)
        return status

    async def delete(self, status_id: str) -> bool:
        async with _storage_errors(f"Deleting status {status_id}"):
            async with self.session_factory() as session:
                result = await session.execute(
                    delete(StatusModel).where(StatusModel.id == status_id)
                )
                await session.commit()
                return result.rowcount > 0
