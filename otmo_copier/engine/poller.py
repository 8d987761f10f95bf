"""Poll cycle: read a bounded batch of new OTMO events and copy them in order.

The cursor advances after every event, including malformed ones and write
conflicts, so a restart resumes right after the last event that reached a
terminal state. If storage fails mid-batch the exception propagates before
the cursor moves past the failing event.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field

from otmo_copier.engine.pipeline import DUPLICATE, CopyPipeline
from otmo_copier.errors import DuplicateEventError, ValidationError
from otmo_copier.repository import SqlRepository
from otmo_copier.services.event_source import JsonlEventSource
from otmo_copier.services.trader_stats import TraderStatsProvider

logger = logging.getLogger(__name__)


@dataclass
class PollSummary:
    read: int = 0
    invalid: int = 0
    duplicates: int = 0
    conflicts: int = 0
    by_status: Counter = field(default_factory=Counter)
    cursor: int = 0
    skipped_overlap: bool = False

    def as_dict(self) -> dict:
        return {
            "read": self.read,
            "invalid": self.invalid,
            "duplicates": self.duplicates,
            "conflicts": self.conflicts,
            "by_status": dict(self.by_status),
            "cursor": self.cursor,
            "skipped_overlap": self.skipped_overlap,
        }


class EventPoller:
    def __init__(
        self,
        source: JsonlEventSource,
        pipeline: CopyPipeline,
        repository: SqlRepository,
        stats: TraderStatsProvider,
        batch_size: int = 100,
    ):
        self.source = source
        self.pipeline = pipeline
        self.repository = repository
        self.stats = stats
        self.batch_size = batch_size
        self._lock = asyncio.Lock()

    async def run_once(self) -> PollSummary:
        """Run one poll cycle, skipping if a prior cycle is still in-flight."""
        if self._lock.locked():
            logger.warning("Skipping overlapping poll cycle")
            return PollSummary(skipped_overlap=True)

        async with self._lock:
            return await self._run_once()

    async def _run_once(self) -> PollSummary:
        source_name = self.source.name
        cursor, byte_offset = self.repository.get_cursor_state(source_name)
        summary = PollSummary(cursor=cursor)
        self.stats.refresh()

        for line in self.source.read(start=cursor, limit=self.batch_size, byte_offset=byte_offset):
            summary.read += 1
            if isinstance(line.item, ValidationError):
                logger.warning(f"[{source_name}:{line.offset}] Dropping malformed event: {line.item}")
                summary.invalid += 1
            else:
                await self._process_one(line.item, line.offset, summary)

            summary.cursor = line.offset + 1
            self.repository.set_cursor(source_name, summary.cursor, line.end)

        if summary.read:
            logger.info(
                f"Poll cycle: read={summary.read} invalid={summary.invalid} "
                f"duplicates={summary.duplicates} conflicts={summary.conflicts} "
                f"status={dict(summary.by_status)} cursor={summary.cursor}"
            )
        return summary

    async def _process_one(self, event, offset: int, summary: PollSummary):
        context = self.stats.context_for(event.trader_id)
        try:
            outcome = await self.pipeline.process(event, context)
        except ValidationError:
            summary.invalid += 1
            return
        except DuplicateEventError as e:
            # Another writer recorded this key between our check and insert
            logger.error(f"[{self.source.name}:{offset}] Write conflict: {e}")
            summary.conflicts += 1
            return

        if not outcome.persisted and outcome.reason == DUPLICATE:
            summary.duplicates += 1
        else:
            summary.by_status[outcome.status.value] += 1
