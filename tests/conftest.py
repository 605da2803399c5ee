"""Shared fixtures for fastapi-trackmark tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from fastapi_trackmark.exceptions import (
    ArchiveConsistencyError,
    BookmarkNotFoundError,
)
from fastapi_trackmark.types import ArchiveSnapshot, normalize_track_number

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def at(hours: int) -> datetime:
    """A fixed timestamp ``hours`` after T0."""
    return T0 + timedelta(hours=hours)


@dataclass
class DemoBookmark:
    track_number: str
    description: str = ""
    track_id: str | None = None
    created_at: datetime = T0


@dataclass
class DemoArchiveEntry:
    description: str
    track_number: str
    history: list[dict]
    received_at: datetime


@dataclass
class DemoUser:
    id: str
    phone: str
    bookmarks: list[DemoBookmark] = field(default_factory=list)
    archive: list[DemoArchiveEntry] = field(default_factory=list)


@dataclass
class DemoHistoryEntry:
    status_id: str | None
    date: datetime


@dataclass
class DemoShipment:
    id: str
    track_number: str
    status: str = "in transit"
    history: list[DemoHistoryEntry] = field(default_factory=list)
    price: str | None = None
    weight: str | None = None
    user: str | None = None
    created_at: datetime = T0


@dataclass
class DemoStatus:
    id: str
    status_text: str


class InMemoryUserRepo:
    def __init__(self) -> None:
        self.items: dict[str, DemoUser] = {}
        self.backfills: list[tuple[str, str, str]] = []
        self.fail_removal = False

    def add(self, user: DemoUser) -> DemoUser:
        self.items[user.id] = user
        return user

    def _find(self, user_id: str, track_number: str) -> DemoBookmark | None:
        key = normalize_track_number(track_number)
        for bookmark in self.items[user_id].bookmarks:
            if normalize_track_number(bookmark.track_number) == key:
                return bookmark
        return None

    async def get_by_id(self, user_id: str) -> DemoUser | None:
        return self.items.get(user_id)

    async def get_by_phone(self, phone: str) -> DemoUser | None:
        for user in self.items.values():
            if user.phone == phone:
                return user
        return None

    async def add_bookmark(
        self, user_id: str, *, track_number: str, description: str
    ) -> DemoBookmark:
        bookmark = DemoBookmark(
            track_number=track_number,
            description=description,
            created_at=datetime.now(tz=UTC),
        )
        self.items[user_id].bookmarks.append(bookmark)
        return bookmark

    async def remove_bookmark(self, user_id: str, track_number: str) -> bool:
        bookmark = self._find(user_id, track_number)
        if bookmark is None:
            return False
        self.items[user_id].bookmarks.remove(bookmark)
        return True

    async def set_bookmark_track_id(
        self, user_id: str, track_number: str, track_id: str
    ) -> None:
        self.backfills.append((user_id, track_number, track_id))
        bookmark = self._find(user_id, track_number)
        if bookmark is not None:
            bookmark.track_id = track_id

    async def archive_bookmark(
        self, user_id: str, track_number: str, entry: ArchiveSnapshot
    ) -> None:
        user = self.items[user_id]
        archived = DemoArchiveEntry(
            description=entry.description,
            track_number=entry.track_number,
            history=list(entry.history),
            received_at=entry.received_at,
        )
        user.archive.append(archived)
        bookmark = self._find(user_id, track_number)
        if self.fail_removal or bookmark is None:
            # Compensate: this store cannot apply both writes atomically.
            user.archive.remove(archived)
            if bookmark is None:
                raise BookmarkNotFoundError(track_number)
            raise ArchiveConsistencyError(f"Bookmark {track_number} not removed")
        user.bookmarks.remove(bookmark)


class InMemoryShipmentRepo:
    def __init__(self) -> None:
        self.items: dict[str, DemoShipment] = {}
        self.lookups: list[tuple[str, str]] = []
        self.broken: set[str] = set()
        self.contacts: list[tuple[str, str]] = []

    def add(self, shipment: DemoShipment) -> DemoShipment:
        self.items[shipment.id] = shipment
        return shipment

    async def get_by_id(self, shipment_id: str) -> DemoShipment | None:
        self.lookups.append(("id", shipment_id))
        if shipment_id in self.broken:
            raise RuntimeError(f"lookup of {shipment_id} timed out")
        return self.items.get(shipment_id)

    async def find_by_track_number(
        self, track_number: str
    ) -> DemoShipment | None:
        self.lookups.append(("track_number", track_number))
        key = normalize_track_number(track_number)
        if key in self.broken:
            raise RuntimeError(f"lookup of {track_number} timed out")
        for shipment in self.items.values():
            if normalize_track_number(shipment.track_number) == key:
                return shipment
        return None

    async def set_contact(self, shipment_id: str, contact: str) -> None:
        self.contacts.append((shipment_id, contact))
        self.items[shipment_id].user = contact


class InMemoryStatusRepo:
    def __init__(self) -> None:
        self.items: dict[str, DemoStatus] = {}
        self.lookups: list[str] = []

    def add(self, status_id: str, status_text: str) -> DemoStatus:
        status = DemoStatus(id=status_id, status_text=status_text)
        self.items[status_id] = status
        return status

    async def get_by_id(self, status_id: str) -> DemoStatus | None:
        self.lookups.append(status_id)
        return self.items.get(status_id)


@pytest.fixture()
def users() -> InMemoryUserRepo:
    return InMemoryUserRepo()


@pytest.fixture()
def shipments() -> InMemoryShipmentRepo:
    return InMemoryShipmentRepo()


@pytest.fixture()
def statuses() -> InMemoryStatusRepo:
    repo = InMemoryStatusRepo()
    repo.add("st-accepted", "accepted at warehouse")
    repo.add("st-transit", "in transit")
    repo.add("st-ready", "ready for pickup")
    return repo


@pytest.fixture()
async def async_engine(tmp_path):
    """Create a file-backed aiosqlite async engine."""
    sa = pytest.importorskip("sqlalchemy")  # noqa: F841
    from sqlalchemy.ext.asyncio import create_async_engine

    from fastapi_trackmark.contrib.sqlalchemy.models import Base

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'trackmark.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def async_session_factory(async_engine):
    """Create an async session factory bound to the test engine."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    yield factory


@pytest.fixture()
def sqlalchemy_users(async_session_factory):
    from fastapi_trackmark.contrib.sqlalchemy.repository import (
        SQLAlchemyUserRepository,
    )

    return SQLAlchemyUserRepository(async_session_factory)


@pytest.fixture()
def sqlalchemy_shipments(async_session_factory):
    from fastapi_trackmark.contrib.sqlalchemy.repository import (
        SQLAlchemyShipmentRepository,
    )

    return SQLAlchemyShipmentRepository(async_session_factory)


@pytest.fixture()
def sqlalchemy_statuses(async_session_factory):
    from fastapi_trackmark.contrib.sqlalchemy.repository import (
        SQLAlchemyStatusRepository,
    )

    return SQLAlchemyStatusRepository(async_session_factory)
