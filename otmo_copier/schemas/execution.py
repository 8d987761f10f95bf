"""Intent and result types exchanged between the router and venue adapters."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from otmo_copier.schemas.events import NormalizedTradeEvent


class IntentType(str, Enum):
    OPEN = "OPEN"
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"
    CLOSE = "CLOSE"
    UPDATE_TP_SL = "UPDATE_TP_SL"
    CANCEL_ORDER = "CANCEL_ORDER"


class ExecutionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class ExecutionIntent:
    intent_type: IntentType
    event: NormalizedTradeEvent
    existing_order_id: str | None = None
    existing_position_id: str | None = None


@dataclass(frozen=True)
class PriceSnapshot:
    symbol: str
    price: float
    observed_at: datetime

    @classmethod
    def from_event(cls, event: NormalizedTradeEvent) -> "PriceSnapshot":
        return cls(
            symbol=event.symbol,
            price=event.price,
            observed_at=event.timestamp or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class ExecutionResult:
    status: ExecutionStatus
    venue_order_id: str | None = None
    venue_position_id: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, venue_order_id: str | None = None, venue_position_id: str | None = None) -> "ExecutionResult":
        return cls(ExecutionStatus.SUCCESS, venue_order_id=venue_order_id, venue_position_id=venue_position_id)

    @classmethod
    def failed(cls, error: str) -> "ExecutionResult":
        return cls(ExecutionStatus.FAILED, error=error)

    @classmethod
    def skipped(cls, reason: str) -> "ExecutionResult":
        return cls(ExecutionStatus.SKIPPED, error=reason)
