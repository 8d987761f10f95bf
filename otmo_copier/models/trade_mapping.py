"""TradeMapping model: latest venue linkage for a copied source trade."""

from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class TradeMapping(SQLModel, table=True):
    __tablename__ = "trade_mapping"
    __table_args__ = (
        UniqueConstraint("source_trade_id", "venue", name="uq_trade_mapping_trade_venue"),
    )

    id: int | None = Field(default=None, primary_key=True)
    source_trade_id: str = Field(index=True)
    venue: str
    venue_order_id: str | None = None
    venue_position_id: str | None = None
    last_intent_type: str  # "OPEN", "INCREASE", "DECREASE", "CLOSE", "UPDATE_TP_SL", "CANCEL_ORDER"
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
