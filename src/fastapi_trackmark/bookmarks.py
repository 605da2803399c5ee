"""Adding and removing bookmarks."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi_trackmark.exceptions import (
    BookmarkNotFoundError,
    DuplicateBookmarkError,
    InvalidTrackNumberError,
    UserNotFoundError,
)
from fastapi_trackmark.protocols import Bookmark, UserRepository
from fastapi_trackmark.types import normalize_track_number

logger = logging.getLogger(__name__)


def find_bookmark(bookmarks: Iterable[Bookmark], track_number: str) -> Bookmark | None:
    key = normalize_track_number(track_number)
    for bookmark in bookmarks:
        if normalize_track_number(bookmark.track_number) == key:
            return bookmark
    return None


async def add_bookmark(
    users: UserRepository,
    user_id: str,
    *,
    track_number: str,
    description: str = "",
) -> Bookmark:
    """Bookmark ``track_number`` for the user.

    Raises InvalidTrackNumberError for a blank tracking number and
    DuplicateBookmarkError if an equivalent one (ignoring case and
    whitespace) is already bookmarked.
    """
    if not normalize_track_number(track_number):
        raise InvalidTrackNumberError(track_number)

    user = await users.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    if find_bookmark(user.bookmarks, track_number) is not None:
        raise DuplicateBookmarkError(track_number)

    bookmark = await users.add_bookmark(
        user_id,
        track_number=track_number.strip(),
        description=description,
    )
    logger.info("User %s bookmarked %s", user_id, bookmark.track_number)
    return bookmark


async def remove_bookmark(
    users: UserRepository, user_id: str, track_number: str
) -> None:
    user = await users.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    if not await users.remove_bookmark(user_id, track_number):
        raise BookmarkNotFoundError(track_number)
