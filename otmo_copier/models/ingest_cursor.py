"""IngestCursor model: how far the poller has read into each event source."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class IngestCursor(SQLModel, table=True):
    __tablename__ = "ingest_cursor"

    id: int | None = Field(default=None, primary_key=True)
    source: str = Field(unique=True, index=True)
    position: int = 0  # next unread line offset
    byte_offset: int = 0  # where that line starts; 0 = unknown, rescan
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
