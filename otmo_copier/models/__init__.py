"""Database models."""

from otmo_copier.models.processed_event import ProcessedEvent
from otmo_copier.models.trade_mapping import TradeMapping
from otmo_copier.models.ingest_cursor import IngestCursor

__all__ = [
    "ProcessedEvent",
    "TradeMapping",
    "IngestCursor",
]
