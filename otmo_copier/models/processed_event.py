"""ProcessedEvent model: one row per attempted OTMO event, whatever its outcome."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class ProcessedEvent(SQLModel, table=True):
    __tablename__ = "processed_event"

    id: int | None = Field(default=None, primary_key=True)
    idempotency_key: str = Field(unique=True, index=True)  # "<source_trade_id>:<event_type>:<venue>"
    source_trade_id: str = Field(index=True)
    event_type: str | None = None
    venue: str | None = None
    status: str  # "SUCCESS", "FAILED", "SKIPPED"
    error: str | None = None  # failure detail or skip reason
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
