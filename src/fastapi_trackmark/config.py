"""FastAPI adapter configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackmarkConfig(BaseSettings):
    """Runtime config for the bookmark router."""

    model_config = SettingsConfigDict(env_prefix="TRACKMARK_")

    bookmarks_page_size: int = Field(default=10, ge=1)
    archive_page_size: int = Field(default=20, ge=1)
    ready_for_pickup_text: str = "ready for pickup"
    ready_for_pickup_status_ids: list[str] = Field(default_factory=list)
    unknown_status_text: str = "unknown status"
    backfill_on_read: bool = True
    resolve_on_confirm: bool = False
