"""SQLAlchemy repository tests with real aiosqlite DB."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from conftest import at
from fastapi_trackmark.exceptions import (
    BookmarkNotFoundError,
    DuplicateBookmarkError,
    ShipmentNotFoundError,
    StorageError,
)
from fastapi_trackmark.types import ArchiveSnapshot, as_utc


async def test_create_and_get_user(sqlalchemy_users) -> None:
    created = await sqlalchemy_users.create(phone="+700", id="u-1")

    assert created.id == "u-1"
    by_id = await sqlalchemy_users.get_by_id("u-1")
    by_phone = await sqlalchemy_users.get_by_phone("+700")
    assert by_id is not None and by_id.phone == "+700"
    assert by_phone is not None and by_phone.id == "u-1"
    assert by_id.bookmarks == []
    assert by_id.archive == []


async def test_missing_user_is_none(sqlalchemy_users) -> None:
    assert await sqlalchemy_users.get_by_id("nobody") is None
    assert await sqlalchemy_users.get_by_phone("+000") is None


async def test_add_bookmark_keeps_insertion_order(sqlalchemy_users) -> None:
    await sqlalchemy_users.create(phone="+700", id="u-1")
    for number in ("B2", "A1", "C3"):
        await sqlalchemy_users.add_bookmark(
            "u-1", track_number=number, description=""
        )

    user = await sqlalchemy_users.get_by_id("u-1")
    assert [b.track_number for b in user.bookmarks] == ["B2", "A1", "C3"]


async def test_add_duplicate_bookmark_raises(sqlalchemy_users) -> None:
    await sqlalchemy_users.create(phone="+700", id="u-1")
    await sqlalchemy_users.add_bookmark("u-1", track_number="AB1", description="")

    with pytest.raises(DuplicateBookmarkError):
        await sqlalchemy_users.add_bookmark(
            "u-1", track_number=" ab1", description=""
        )


async def test_remove_bookmark_by_normalized_number(sqlalchemy_users) -> None:
    await sqlalchemy_users.create(phone="+700", id="u-1")
    await sqlalchemy_users.add_bookmark("u-1", track_number="AB1", description="")

    assert await sqlalchemy_users.remove_bookmark("u-1", "a b 1") is True
    assert await sqlalchemy_users.remove_bookmark("u-1", "AB1") is False


async def test_set_bookmark_track_id(sqlalchemy_users) -> None:
    await sqlalchemy_users.create(phone="+700", id="u-1")
    await sqlalchemy_users.add_bookmark("u-1", track_number="AB1", description="")

    await sqlalchemy_users.set_bookmark_track_id("u-1", "ab1", "s-1")
    # Removed bookmarks are skipped silently.
    await sqlalchemy_users.set_bookmark_track_id("u-1", "GONE", "s-2")

    user = await sqlalchemy_users.get_by_id("u-1")
    assert [b.track_id for b in user.bookmarks] == ["s-1"]


async def test_archive_bookmark_moves_in_one_transaction(sqlalchemy_users) -> None:
    await sqlalchemy_users.create(phone="+700", id="u-1")
    await sqlalchemy_users.add_bookmark("u-1", track_number="AB1", description="x")
    await sqlalchemy_users.add_bookmark("u-1", track_number="CD2", description="")
    snapshot = ArchiveSnapshot(
        description="x",
        track_number="AB1",
        history=[{"status_id": "st-1", "date": at(0).isoformat()}],
        received_at=at(3),
    )

    await sqlalchemy_users.archive_bookmark("u-1", "AB1", snapshot)

    user = await sqlalchemy_users.get_by_id("u-1")
    assert [b.track_number for b in user.bookmarks] == ["CD2"]
    [entry] = user.archive
    assert entry.track_number == "AB1"
    assert entry.history == snapshot.history
    assert as_utc(entry.received_at) == at(3)


async def test_archive_rolls_back_when_bookmark_missing(sqlalchemy_users) -> None:
    await sqlalchemy_users.create(phone="+700", id="u-1")
    snapshot = ArchiveSnapshot(description="", track_number="AB1")

    with pytest.raises(BookmarkNotFoundError):
        await sqlalchemy_users.archive_bookmark("u-1", "AB1", snapshot)

    user = await sqlalchemy_users.get_by_id("u-1")
    assert user.archive == []


async def test_find_shipment_by_normalized_number(sqlalchemy_shipments) -> None:
    await sqlalchemy_shipments.create(
        id="s-new", track_number="AB 1", created_at=at(5)
    )
    await sqlalchemy_shipments.create(
        id="s-old", track_number="ab1", created_at=at(1)
    )

    found = await sqlalchemy_shipments.find_by_track_number("AB1")
    assert found is not None
    assert found.id == "s-old"
    assert await sqlalchemy_shipments.find_by_track_number("AB") is None


async def test_shipment_history_and_contact(sqlalchemy_shipments) -> None:
    await sqlalchemy_shipments.create(
        id="s-1",
        track_number="AB1",
        status="accepted",
        price="9.99",
        history=[{"status_id": "st-1", "date": at(0)}],
    )
    await sqlalchemy_shipments.add_history("s-1", "st-2", at(1), status="in transit")
    await sqlalchemy_shipments.set_contact("s-1", "+700")

    shipment = await sqlalchemy_shipments.get_by_id("s-1")
    assert shipment.status == "in transit"
    assert shipment.price == "9.99"
    assert shipment.user == "+700"
    assert [h.status_id for h in shipment.history] == ["st-1", "st-2"]


async def test_set_contact_on_missing_shipment(sqlalchemy_shipments) -> None:
    with pytest.raises(ShipmentNotFoundError):
        await sqlalchemy_shipments.set_contact("nope", "+700")


async def test_status_create_get_delete(sqlalchemy_statuses) -> None:
    status = await sqlalchemy_statuses.create("in transit", id="st-1")

    assert status.status_text == "in transit"
    assert (await sqlalchemy_statuses.get_by_id("st-1")).status_text == "in transit"
    assert await sqlalchemy_statuses.delete("st-1") is True
    assert await sqlalchemy_statuses.get_by_id("st-1") is None
    assert await sqlalchemy_statuses.delete("st-1") is False


async def test_database_errors_become_storage_errors(
    sqlalchemy_users, async_engine
) -> None:
    async with async_engine.begin() as conn:
        await conn.exec_driver_sql("DROP TABLE trackmark_archive_entries")
        await conn.exec_driver_sql("DROP TABLE trackmark_bookmarks")
        await conn.exec_driver_sql("DROP TABLE trackmark_users")

    with pytest.raises(StorageError) as exc_info:
        await sqlalchemy_users.get_by_id("u-1")
    assert isinstance(exc_info.value.__cause__, OperationalError)
