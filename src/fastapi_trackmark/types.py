"""Plain value types shared by the core and storage backends."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi_trackmark.protocols import HistoryEntry


def normalize_track_number(track_number: str) -> str:
    """Matching key for a tracking number: no whitespace, lower case."""
    return "".join(track_number.split()).lower()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed sources stay comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def snapshot_history(entries: Iterable[HistoryEntry]) -> list[dict[str, Any]]:
    """Copy raw history entries into JSON-friendly archive items."""
    return [
        {
            "status_id": entry.status_id,
            "date": as_utc(entry.date).isoformat(),
        }
        for entry in entries
    ]


@dataclass(frozen=True)
class ArchiveSnapshot:
    """Archive entry built at receipt confirmation time."""

    description: str
    track_number: str
    history: list[dict[str, Any]] = field(default_factory=list)
    received_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
