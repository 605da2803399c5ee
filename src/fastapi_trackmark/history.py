"""Status text resolution for shipment and archive history."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from fastapi_trackmark.protocols import HistoryEntry, StatusRepository
from fastapi_trackmark.schemas import HistoryItem

logger = logging.getLogger(__name__)

UNKNOWN_STATUS_TEXT = "unknown status"


class StatusHistoryResolver:
    """Attach human-readable status text to history entries.

    Never fails and never drops entries: a deleted status, an empty
    reference or a failed lookup all resolve to ``unknown_text``.
    """

    def __init__(
        self,
        statuses: StatusRepository,
        unknown_text: str = UNKNOWN_STATUS_TEXT,
    ) -> None:
        self.statuses = statuses
        self.unknown_text = unknown_text

    async def resolve(self, entries: Sequence[HistoryEntry]) -> list[HistoryItem]:
        texts = await self._lookup(entry.status_id for entry in entries)
        return [
            HistoryItem(
                status_id=_ref(entry.status_id),
                date=entry.date,
                status_text=texts.get(_ref(entry.status_id), self.unknown_text),
            )
            for entry in entries
        ]

    async def resolve_archived(
        self, history: Sequence[Mapping[str, Any]]
    ) -> list[HistoryItem]:
        """Resolve archive snapshot items (plain ``status_id``/``date`` maps)."""
        texts = await self._lookup(item.get("status_id") for item in history)
        return [
            HistoryItem(
                status_id=_ref(item.get("status_id")),
                date=item["date"],
                status_text=texts.get(
                    _ref(item.get("status_id")), self.unknown_text
                ),
            )
            for item in history
        ]

    async def _lookup(self, refs: Iterable[Any]) -> dict[str | None, str]:
        unique = list(dict.fromkeys(r for r in map(_ref, refs) if r is not None))
        results = await asyncio.gather(
            *(self.statuses.get_by_id(status_id) for status_id in unique),
            return_exceptions=True,
        )
        texts: dict[str | None, str] = {}
        for status_id, result in zip(unique, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "Status %s lookup failed, using fallback text: %s",
                    status_id,
                    result,
                )
            elif result is None:
                logger.warning("Status %s not found", status_id)
            else:
                texts[status_id] = result.status_text
        return texts


def _ref(value: Any) -> str | None:
    return None if value is None else str(value)
