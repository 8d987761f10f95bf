"""Dry-run adapter: logs what would be sent and always succeeds."""

import itertools
import logging

from otmo_copier.schemas.execution import (
    ExecutionIntent,
    ExecutionResult,
    IntentType,
    PriceSnapshot,
)
from otmo_copier.services.venues.base import VenueAdapter

logger = logging.getLogger(__name__)


class DryRunAdapter(VenueAdapter):
    """Stand-in for a venue that performs no side effects."""

    def __init__(self, venue: str):
        self.venue = venue
        self._seq = itertools.count(1)

    def _order_id(self, intent: ExecutionIntent) -> str:
        return f"dry-{self.venue}-{intent.intent_type.value.lower()}-{next(self._seq)}"

    def _position_id(self, intent: ExecutionIntent) -> str:
        if intent.existing_position_id:
            return intent.existing_position_id
        return f"dry-{self.venue}-pos-{intent.event.source_trade_id}"

    def _log(self, action: str, intent: ExecutionIntent, snapshot: PriceSnapshot):
        event = intent.event
        logger.info(
            f"DRY-RUN {action} [{event.label}] venue={self.venue} symbol={event.symbol} "
            f"side={event.side.value if event.side else '-'} size=${event.size_usd:.2f} "
            f"lev={event.leverage:g}x tp={event.take_profit} sl={event.stop_loss} "
            f"price={snapshot.price:.4f}@{snapshot.observed_at.isoformat()} "
            f"linked_order={intent.existing_order_id} linked_position={intent.existing_position_id}"
        )

    async def open_position(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        action = "increase" if intent.intent_type == IntentType.INCREASE else "open"
        self._log(action, intent, snapshot)
        return ExecutionResult.success(self._order_id(intent), self._position_id(intent))

    async def close_position(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        action = "decrease" if intent.intent_type == IntentType.DECREASE else "close"
        self._log(action, intent, snapshot)
        return ExecutionResult.success(self._order_id(intent), self._position_id(intent))

    async def update_tp_sl(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        self._log("update_tp_sl", intent, snapshot)
        return ExecutionResult.success(self._order_id(intent), self._position_id(intent))

    async def cancel_order(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        self._log("cancel_order", intent, snapshot)
        return ExecutionResult.success(intent.existing_order_id, intent.existing_position_id)
