"""Bookmark to shipment reconciliation.

Reconciliation is split in two steps. ``reconcile`` is a pure read: it
resolves every bookmark in a window to a shipment (cached ``track_id``
first, then a lookup by normalized tracking number) and derives the
presentation fields. The writes it would imply, caching the resolved
shipment id on the bookmark and claiming the shipment for the user's
contact, are collected on the result and persisted later by ``apply``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from dataclasses import dataclass, field

from fastapi_trackmark.exceptions import UserNotFoundError
from fastapi_trackmark.history import StatusHistoryResolver
from fastapi_trackmark.protocols import (
    Bookmark,
    Shipment,
    ShipmentRepository,
    User,
    UserRepository,
)
from fastapi_trackmark.schemas import (
    BookmarkView,
    HistoryItem,
    ResolvedBookmark,
    ShipmentDetails,
    UnresolvedBookmark,
)

logger = logging.getLogger(__name__)

READY_FOR_PICKUP_TEXT = "ready for pickup"


@dataclass(frozen=True)
class Backfill:
    track_number: str
    track_id: str


@dataclass(frozen=True)
class ContactClaim:
    shipment_id: str
    contact: str


@dataclass
class Reconciliation:
    """Views for one bookmark window plus the writes they imply."""

    user_id: str
    items: list[BookmarkView]
    total: int
    backfills: list[Backfill] = field(default_factory=list)
    claims: list[ContactClaim] = field(default_factory=list)

    @property
    def resolved(self) -> list[ResolvedBookmark]:
        return [i for i in self.items if isinstance(i, ResolvedBookmark)]

    @property
    def unresolved(self) -> list[UnresolvedBookmark]:
        return [i for i in self.items if isinstance(i, UnresolvedBookmark)]


@dataclass
class ReconcileResult:
    backfilled: int = 0
    claimed: int = 0
    failed: int = 0


def is_ready_for_pickup(
    history: Collection[HistoryItem],
    *,
    ready_text: str = READY_FOR_PICKUP_TEXT,
    ready_status_ids: Collection[str] = (),
) -> bool:
    """Exact, case-sensitive status text match, or a configured status id."""
    return any(
        item.status_text == ready_text
        or (item.status_id is not None and item.status_id in ready_status_ids)
        for item in history
    )


class BookmarkReconciler:
    def __init__(
        self,
        *,
        users: UserRepository,
        shipments: ShipmentRepository,
        history_resolver: StatusHistoryResolver,
        ready_text: str = READY_FOR_PICKUP_TEXT,
        ready_status_ids: Collection[str] = (),
    ) -> None:
        self.users = users
        self.shipments = shipments
        self.history_resolver = history_resolver
        self.ready_text = ready_text
        self.ready_status_ids = frozenset(ready_status_ids)

    async def reconcile(
        self,
        user_id: str,
        *,
        skip: int = 0,
        limit: int | None = None,
    ) -> Reconciliation:
        """Resolve the bookmarks in ``[skip, skip + limit)``.

        Raises UserNotFoundError when the user is absent. Storage faults
        while loading the user propagate; a failure resolving a single
        bookmark only marks that bookmark unresolved.
        """
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        bookmarks = list(user.bookmarks)
        end = None if limit is None else skip + limit
        window = bookmarks[skip:end]

        outcomes = await asyncio.gather(
            *(self._reconcile_one(user, bookmark) for bookmark in window)
        )

        result = Reconciliation(
            user_id=str(user.id), items=[], total=len(bookmarks)
        )
        claimed: set[str] = set()
        for view, backfill, claim in outcomes:
            result.items.append(view)
            if backfill is not None:
                result.backfills.append(backfill)
            if claim is not None and claim.shipment_id not in claimed:
                claimed.add(claim.shipment_id)
                result.claims.append(claim)
        return result

    async def find_shipment(self, bookmark: Bookmark) -> Shipment | None:
        """Cached id when present, otherwise the normalized number lookup."""
        if bookmark.track_id:
            return await self.shipments.get_by_id(str(bookmark.track_id))
        return await self.shipments.find_by_track_number(bookmark.track_number)

    async def _reconcile_one(
        self, user: User, bookmark: Bookmark
    ) -> tuple[BookmarkView, Backfill | None, ContactClaim | None]:
        try:
            shipment = await self.find_shipment(bookmark)
        except Exception as exc:
            logger.warning(
                "Lookup for bookmark %s of user %s failed: %s",
                bookmark.track_number,
                user.id,
                exc,
            )
            shipment = None

        if shipment is None:
            unresolved = UnresolvedBookmark(
                track_number=bookmark.track_number,
                description=bookmark.description,
                created_at=bookmark.created_at,
            )
            return unresolved, None, None

        backfill = None
        if not bookmark.track_id:
            backfill = Backfill(bookmark.track_number, str(shipment.id))

        claim = None
        if shipment.user != user.phone:
            claim = ContactClaim(str(shipment.id), user.phone)

        history = await self.history_resolver.resolve(list(shipment.history))
        resolved = ResolvedBookmark(
            track_number=bookmark.track_number,
            description=bookmark.description,
            track_id=str(shipment.id),
            current_status=str(shipment.status),
            track_details=ShipmentDetails.from_shipment(shipment),
            history=history,
            price=shipment.price,
            weight=shipment.weight,
            ready_for_pickup=is_ready_for_pickup(
                history,
                ready_text=self.ready_text,
                ready_status_ids=self.ready_status_ids,
            ),
            created_at=shipment.created_at,
        )
        return resolved, backfill, claim

    async def apply(
        self, reconciliation: Reconciliation
    ) -> ReconcileResult:
        """Persist backfills and contact claims.

        Each write is independent and last-write-wins; failures are
        logged and counted, never raised.
        """
        result = ReconcileResult()
        user_id = reconciliation.user_id

        for backfill in reconciliation.backfills:
            try:
                await self.users.set_bookmark_track_id(
                    user_id, backfill.track_number, backfill.track_id
                )
                result.backfilled += 1
            except Exception as exc:
                result.failed += 1
                logger.warning(
                    "Backfill of bookmark %s for user %s failed: %s",
                    backfill.track_number,
                    user_id,
                    exc,
                )

        for claim in reconciliation.claims:
            try:
                await self.shipments.set_contact(claim.shipment_id, claim.contact)
                result.claimed += 1
            except Exception as exc:
                result.failed += 1
                logger.warning(
                    "Contact update of shipment %s failed: %s",
                    claim.shipment_id,
                    exc,
                )

        if result.backfilled or result.claimed:
            logger.info(
                "Reconciled user %s: %d backfilled, %d claimed, %d failed",
                user_id,
                result.backfilled,
                result.claimed,
                result.failed,
            )
        return result

