"""Pydantic schemas for OTMO source events and their normalized form."""

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field


class EventType(str, Enum):
    OPEN = "OPEN"
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    CLOSE = "CLOSE"
    UPDATE_TP_SL = "UPDATE_TP_SL"
    CANCEL_ORDER = "CANCEL_ORDER"


class PositionSide(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class SourceTradeEvent(BaseModel):
    """Raw event as read from the OTMO feed.

    Every field is optional here so that a malformed record can still be
    parsed and rejected by the normalizer with a precise reason. Accepts both
    the feed's camelCase keys and snake_case field names.
    """

    source_trade_id: str | None = Field(
        default=None, validation_alias=AliasChoices("source_trade_id", "sourceTradeId", "id")
    )
    trader_id: str | None = Field(
        default=None, validation_alias=AliasChoices("trader_id", "traderId", "trader")
    )
    event_type: str | None = Field(
        default=None, validation_alias=AliasChoices("event_type", "eventType", "type")
    )
    symbol: str | None = Field(default=None, validation_alias=AliasChoices("symbol", "market"))
    side: str | None = Field(
        default=None, validation_alias=AliasChoices("side", "positionSide", "position_side")
    )
    size_usd: float | None = Field(default=None, validation_alias=AliasChoices("size_usd", "sizeUsd"))
    price: float | None = None
    leverage: float | None = None
    take_profit: float | None = Field(
        default=None, validation_alias=AliasChoices("take_profit", "takeProfit", "tp")
    )
    stop_loss: float | None = Field(
        default=None, validation_alias=AliasChoices("stop_loss", "stopLoss", "sl")
    )
    venue: str | None = None
    timestamp: datetime | None = None

    model_config = {"frozen": True, "extra": "ignore", "coerce_numbers_to_str": True}


class NormalizedTradeEvent(BaseModel):
    source_trade_id: str
    trader_id: str
    event_type: EventType
    symbol: str
    side: PositionSide | None = None
    size_usd: float = 0.0
    price: float = 0.0
    leverage: float = 1.0
    take_profit: float | None = None
    stop_loss: float | None = None
    venue: str
    timestamp: datetime | None = None
    idempotency_key: str

    model_config = {"frozen": True, "allow_inf_nan": False}

    @property
    def label(self) -> str:
        """Short tag used as a log prefix."""
        return self.idempotency_key


class EligibilityContext(BaseModel):
    """Trader-level aggregates, supplied fresh for every event."""

    trader_id: str = ""
    roi: float = 0.0
    is_consistent: bool = False
    is_hedging: bool = False

    model_config = {"frozen": True, "allow_inf_nan": False}
