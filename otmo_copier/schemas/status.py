"""Pydantic schemas for the status / metrics read API."""

from datetime import datetime
from pydantic import BaseModel


class ProcessedEventRead(BaseModel):
    idempotency_key: str
    source_trade_id: str
    event_type: str | None
    venue: str | None
    status: str
    error: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TradeMappingRead(BaseModel):
    source_trade_id: str
    venue: str
    venue_order_id: str | None
    venue_position_id: str | None
    last_intent_type: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatusSummary(BaseModel):
    processed_total: int
    by_status: dict[str, int]
    mapping_count: int
    cursor: int
    dry_run: bool
    default_venue: str
