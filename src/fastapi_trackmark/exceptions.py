"""Trackmark exceptions and their mapping to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


class TrackmarkError(Exception):
    """Base class for all trackmark errors."""


class UserNotFoundError(TrackmarkError):
    def __init__(self, user_ref: str) -> None:
        self.user_ref = user_ref
        super().__init__(f"User {user_ref} not found")


class BookmarkNotFoundError(TrackmarkError):
    def __init__(self, track_number: str) -> None:
        self.track_number = track_number
        super().__init__(f"Bookmark {track_number} not found")


class ShipmentNotFoundError(TrackmarkError):
    def __init__(self, shipment_ref: str) -> None:
        self.shipment_ref = shipment_ref
        super().__init__(f"Shipment {shipment_ref} not found")


class DuplicateBookmarkError(TrackmarkError):
    def __init__(self, track_number: str) -> None:
        self.track_number = track_number
        super().__init__(
            f"Bookmark with track number {track_number} already exists"
        )


class InvalidTrackNumberError(TrackmarkError):
    def __init__(self, track_number: str) -> None:
        self.track_number = track_number
        super().__init__(f"Track number {track_number!r} is not valid")


class UnresolvedBookmarkError(TrackmarkError):
    """Bookmark has no linked shipment yet."""

    def __init__(self, track_number: str) -> None:
        self.track_number = track_number
        super().__init__(
            f"Bookmark {track_number} is not linked to a shipment yet"
        )


class ArchiveConsistencyError(TrackmarkError):
    """Archive append and bookmark removal were not applied together."""


class StorageError(TrackmarkError):
    """Persistence layer fault."""


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "code": code},
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Register trackmark exception handlers on a FastAPI app.

    More specific handlers must be registered first so FastAPI
    matches them before the generic TrackmarkError handler.

    Handler order (most specific first):
    1. UserNotFoundError / BookmarkNotFoundError / ShipmentNotFoundError → 404
    2. DuplicateBookmarkError / InvalidTrackNumberError → 400
    3. UnresolvedBookmarkError → 409
    4. ArchiveConsistencyError / StorageError → 500, detail is only logged
    5. TrackmarkError → 400 (catch-all)

    Request validation failures answer 422 in the same
    ``{message, code}`` shape.
    """

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return _error(422, _validation_message(exc), "validation_error")

    @app.exception_handler(UserNotFoundError)
    async def _user_not_found(
        request: Request,
        exc: UserNotFoundError,
    ) -> JSONResponse:
        return _error(404, str(exc), "user_not_found")

    @app.exception_handler(BookmarkNotFoundError)
    async def _bookmark_not_found(
        request: Request,
        exc: BookmarkNotFoundError,
    ) -> JSONResponse:
        return _error(404, str(exc), "bookmark_not_found")

    @app.exception_handler(ShipmentNotFoundError)
    async def _shipment_not_found(
        request: Request,
        exc: ShipmentNotFoundError,
    ) -> JSONResponse:
        return _error(404, str(exc), "shipment_not_found")

    @app.exception_handler(DuplicateBookmarkError)
    async def _duplicate_bookmark(
        request: Request,
        exc: DuplicateBookmarkError,
    ) -> JSONResponse:
        return _error(400, str(exc), "duplicate_bookmark")

    @app.exception_handler(InvalidTrackNumberError)
    async def _invalid_track_number(
        request: Request,
        exc: InvalidTrackNumberError,
    ) -> JSONResponse:
        return _error(400, str(exc), "invalid_track_number")

    @app.exception_handler(UnresolvedBookmarkError)
    async def _unresolved_bookmark(
        request: Request,
        exc: UnresolvedBookmarkError,
    ) -> JSONResponse:
        return _error(409, str(exc), "unresolved_bookmark")

    @app.exception_handler(ArchiveConsistencyError)
    async def _archive_inconsistent(
        request: Request,
        exc: ArchiveConsistencyError,
    ) -> JSONResponse:
        logger.error(
            "Archive consistency fault on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _error(500, SERVER_ERROR_MESSAGE, "server_error")

    @app.exception_handler(StorageError)
    async def _storage_error(
        request: Request,
        exc: StorageError,
    ) -> JSONResponse:
        logger.error(
            "Storage fault on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _error(500, SERVER_ERROR_MESSAGE, "server_error")

    @app.exception_handler(TrackmarkError)
    async def _trackmark_error(
        request: Request,
        exc: TrackmarkError,
    ) -> JSONResponse:
        return _error(400, str(exc), "trackmark_error")
