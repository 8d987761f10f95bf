"""Execution router: normalized event → intent → venue adapter → result.

The router never lets an adapter fault escape. Unknown venues, adapter
exceptions and malformed adapter returns all become FAILED results.
"""

import logging
from typing import Mapping

from otmo_copier.repository import Repository
from otmo_copier.schemas.events import NormalizedTradeEvent
from otmo_copier.schemas.execution import (
    ExecutionIntent,
    ExecutionResult,
    IntentType,
    PriceSnapshot,
)
from otmo_copier.services.venues.base import VenueAdapter

logger = logging.getLogger(__name__)

# Intent type → adapter capability
CAPABILITIES: dict[IntentType, str] = {
    IntentType.OPEN: "open_position",
    IntentType.INCREASE: "open_position",
    IntentType.DECREASE: "close_position",
    IntentType.CLOSE: "close_position",
    IntentType.UPDATE_TP_SL: "update_tp_sl",
    IntentType.CANCEL_ORDER: "cancel_order",
}


class ExecutionRouter:
    def __init__(self, adapters: Mapping[str, VenueAdapter], repository: Repository):
        self._adapters = dict(adapters)
        self._repository = repository

    def build_intent(self, event: NormalizedTradeEvent) -> ExecutionIntent:
        """Map the event to an intent, attaching any existing venue linkage."""
        mapping = self._repository.get_trade_mapping(event.source_trade_id, event.venue)
        return ExecutionIntent(
            intent_type=IntentType(event.event_type.value),
            event=event,
            existing_order_id=mapping.venue_order_id if mapping else None,
            existing_position_id=mapping.venue_position_id if mapping else None,
        )

    async def execute(self, event: NormalizedTradeEvent) -> tuple[ExecutionIntent | None, ExecutionResult]:
        """Route one event to its venue.

        Returns the intent that was dispatched (None when no adapter serves
        the venue) and the terminal result.
        """
        adapter = self._adapters.get(event.venue)
        if adapter is None:
            logger.warning(f"[{event.label}] No adapter registered for venue '{event.venue}'")
            return None, ExecutionResult.failed("unknown_venue")

        intent = self.build_intent(event)
        snapshot = PriceSnapshot.from_event(event)
        capability = CAPABILITIES[intent.intent_type]

        try:
            result = await getattr(adapter, capability)(intent, snapshot)
        except Exception as e:
            logger.error(f"[{event.label}] {event.venue}.{capability} raised: {e}", exc_info=True)
            return intent, ExecutionResult.failed(f"adapter_error: {e}")

        if not isinstance(result, ExecutionResult):
            logger.error(
                f"[{event.label}] {event.venue}.{capability} returned {type(result).__name__}, "
                f"expected ExecutionResult"
            )
            return intent, ExecutionResult.failed("invalid_adapter_result")

        return intent, result
