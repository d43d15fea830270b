"""Models for cached provider resources and per-collection fetch state."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FetchStatus(str, Enum):
    """Enum for the fetch phase state of one resource collection."""

    NOT_STARTED = "not_started"
    FETCHING = "fetching"
    COMPLETED = "completed"


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """One provider resource plus its ingestion metadata."""

    key: str
    data: dict[str, Any]
    fetched_at: datetime = Field(default_factory=utcnow)
    cursor: str | None = None


class ResourceCacheState(BaseModel):
    """Fetch phase state for one resource collection."""

    status: FetchStatus = FetchStatus.NOT_STARTED
    resource_count: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def resource_fetch_completed(self) -> bool:
        """Whether the fetch phase finished for this collection."""
        return self.status == FetchStatus.COMPLETED
