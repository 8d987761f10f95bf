"""Live venue adapters.

Order placement on the real venues is not wired up yet; every capability a
venue does not implement resolves to a FAILED result with a
``<venue>_<capability>_not_implemented`` error instead of raising, so the
pipeline records the attempt like any other failure.
"""

import logging

from otmo_copier.schemas.execution import ExecutionIntent, ExecutionResult, PriceSnapshot
from otmo_copier.services.venues.base import VenueAdapter

logger = logging.getLogger(__name__)


class LiveVenueAdapter(VenueAdapter):
    venue = "live"

    def _not_implemented(self, capability: str, intent: ExecutionIntent) -> ExecutionResult:
        error = f"{self.venue}_{capability}_not_implemented"
        logger.warning(f"[{intent.event.label}] {error}")
        return ExecutionResult.failed(error)

    async def open_position(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        return self._not_implemented("open_position", intent)

    async def close_position(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        return self._not_implemented("close_position", intent)

    async def update_tp_sl(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        return self._not_implemented("update_tp_sl", intent)

    async def cancel_order(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        return self._not_implemented("cancel_order", intent)


class GmxAdapter(LiveVenueAdapter):
    venue = "gmx"


class OstiumAdapter(LiveVenueAdapter):
    venue = "ostium"
