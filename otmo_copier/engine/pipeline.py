"""Per-event copy pipeline.

Orchestrates, for one source event:
normalize → idempotency gate → copy rules → trader eligibility → venue
routing → one persisted processed-event record (plus the trade mapping on
success).

Every event that survives normalization ends in exactly one ProcessedEvent
row. The only path that writes nothing is a duplicate, whose earlier record
already accounts for it.
"""

import logging
from dataclasses import dataclass

from otmo_copier.config import CopyRuleConfig
from otmo_copier.errors import ValidationError
from otmo_copier.models.processed_event import ProcessedEvent
from otmo_copier.models.trade_mapping import TradeMapping
from otmo_copier.repository import Repository
from otmo_copier.schemas.events import EligibilityContext, NormalizedTradeEvent, SourceTradeEvent
from otmo_copier.schemas.execution import ExecutionIntent, ExecutionResult, ExecutionStatus
from otmo_copier.services.eligibility import evaluate_eligibility
from otmo_copier.services.normalizer import normalize
from otmo_copier.services.rule_engine import evaluate_rules
from otmo_copier.engine.router import ExecutionRouter

logger = logging.getLogger(__name__)

DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ProcessOutcome:
    event: NormalizedTradeEvent
    result: ExecutionResult
    persisted: bool = True  # False only for duplicates

    @property
    def idempotency_key(self) -> str:
        return self.event.idempotency_key

    @property
    def status(self) -> ExecutionStatus:
        return self.result.status

    @property
    def reason(self) -> str | None:
        return self.result.error


class CopyPipeline:
    def __init__(
        self,
        repository: Repository,
        router: ExecutionRouter,
        rules: CopyRuleConfig,
        default_venue: str,
    ):
        self._repository = repository
        self._router = router
        self._rules = rules
        self._default_venue = default_venue

    async def process(self, source: SourceTradeEvent, context: EligibilityContext) -> ProcessOutcome:
        """Run one event through every gate and persist its outcome.

        Raises ValidationError for events that cannot be normalized; those are
        not recorded. Raises DuplicateEventError when a concurrent writer
        recorded the same key first.
        """
        try:
            event = normalize(source, self._default_venue)
        except ValidationError as e:
            logger.warning(f"Dropping malformed event: {e}")
            raise

        if self._repository.has_processed_event(event.idempotency_key):
            logger.info(f"[{event.label}] Already processed, skipping")
            return ProcessOutcome(event, ExecutionResult.skipped(DUPLICATE), persisted=False)

        rule = evaluate_rules(event, self._rules)
        if not rule.passed:
            logger.info(f"[{event.label}] Skipped by {rule.reason}: {rule.message}")
            return self._finish(event, ExecutionResult.skipped(rule.reason))

        eligibility = evaluate_eligibility(context, self._rules)
        if not eligibility.passed:
            logger.info(f"[{event.label}] Skipped by {eligibility.reason}: {eligibility.message}")
            return self._finish(event, ExecutionResult.skipped(eligibility.reason))

        intent, result = await self._router.execute(event)
        if result.status == ExecutionStatus.SUCCESS:
            logger.info(
                f"[{event.label}] Executed {event.event_type.value} on {event.venue}: "
                f"order={result.venue_order_id} position={result.venue_position_id}"
            )
        else:
            logger.warning(f"[{event.label}] Execution {result.status.value}: {result.error}")
        return self._finish(event, result, intent)

    def _finish(
        self,
        event: NormalizedTradeEvent,
        result: ExecutionResult,
        intent: ExecutionIntent | None = None,
    ) -> ProcessOutcome:
        record = ProcessedEvent(
            idempotency_key=event.idempotency_key,
            source_trade_id=event.source_trade_id,
            event_type=event.event_type.value,
            venue=event.venue,
            status=result.status.value,
            error=result.error,
        )
        self._repository.record_outcome(record, _mapping_for(event, result, intent))
        return ProcessOutcome(event, result)


def _mapping_for(
    event: NormalizedTradeEvent,
    result: ExecutionResult,
    intent: ExecutionIntent | None,
) -> TradeMapping | None:
    """Build the mapping row to upsert, or None when there is no linkage to store."""
    if result.status != ExecutionStatus.SUCCESS or intent is None:
        return None

    order_id = result.venue_order_id or intent.existing_order_id
    position_id = result.venue_position_id or intent.existing_position_id
    if order_id is None and position_id is None:
        return None

    return TradeMapping(
        source_trade_id=event.source_trade_id,
        venue=event.venue,
        venue_order_id=order_id,
        venue_position_id=position_id,
        last_intent_type=intent.intent_type.value,
    )
