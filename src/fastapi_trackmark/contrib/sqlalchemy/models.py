"""SQLAlchemy user/bookmark/shipment/status models."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    validates,
)

from fastapi_trackmark.types import normalize_track_number


def _now() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


class UserModel(Base):
    __tablename__ = "trackmark_users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    phone: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now
    )

    bookmarks: Mapped[list[BookmarkModel]] = relationship(
        order_by="BookmarkModel.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    archive: Mapped[list[ArchiveEntryModel]] = relationship(
        order_by="ArchiveEntryModel.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class BookmarkModel(Base):
    """Live bookmark; ``track_key`` is the normalized tracking number."""

    __tablename__ = "trackmark_bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "track_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("trackmark_users.id", ondelete="CASCADE"), index=True
    )
    track_number: Mapped[str] = mapped_column(String(128))
    track_key: Mapped[str] = mapped_column(String(128))
    track_id: Mapped[str | None] = mapped_column(String(64), default=None)
    description: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now
    )

    @validates("track_number")
    def _set_track_key(self, key: str, value: str) -> str:
        self.track_key = normalize_track_number(value)
        return value


class ArchiveEntryModel(Base):
    """Received bookmark with a JSON snapshot of the shipment history."""

    __tablename__ = "trackmark_archive_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("trackmark_users.id", ondelete="CASCADE"), index=True
    )
    description: Mapped[str] = mapped_column(String(255), default="")
    track_number: Mapped[str] = mapped_column(String(128))
    history: Mapped[list] = mapped_column(JSON, default=list)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now
    )


class ShipmentModel(Base):
    __tablename__ = "trackmark_shipments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    track_number: Mapped[str] = mapped_column(String(128))
    track_key: Mapped[str] = mapped_column(String(128), index=True)
    status: Mapped[str] = mapped_column(String(255), default="")
    price: Mapped[str | None] = mapped_column(String(32), default=None)
    weight: Mapped[str | None] = mapped_column(String(32), default=None)
    # Last known contact phone, not a reference to a user row.
    user: Mapped[str | None] = mapped_column(
        "user_contact", String(32), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now
    )

    history: Mapped[list[HistoryEntryModel]] = relationship(
        order_by="HistoryEntryModel.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @validates("track_number")
    def _set_track_key(self, key: str, value: str) -> str:
        self.track_key = normalize_track_number(value)
        return value


class HistoryEntryModel(Base):
    __tablename__ = "trackmark_shipment_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    shipment_id: Mapped[str] = mapped_column(
        ForeignKey("trackmark_shipments.id", ondelete="CASCADE"), index=True
    )
    # No foreign key: statuses may be deleted while history keeps the id.
    status_id: Mapped[str | None] = mapped_column(String(64), default=None)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class StatusModel(Base):
    __tablename__ = "trackmark_statuses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status_text: Mapped[str] = mapped_column(String(255))
