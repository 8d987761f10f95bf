"""Wire the copier components together from a Settings instance.

This is the only place that reads configuration; every component below it
receives its values through its constructor.
"""

from sqlalchemy.engine import Engine

from otmo_copier.config import Settings
from otmo_copier.engine.pipeline import CopyPipeline
from otmo_copier.engine.poller import EventPoller
from otmo_copier.engine.router import ExecutionRouter
from otmo_copier.repository import SqlRepository
from otmo_copier.services.event_source import JsonlEventSource
from otmo_copier.services.trader_stats import TraderStatsProvider
from otmo_copier.services.venues.registry import build_adapters


def build_pipeline(config: Settings, repository: SqlRepository) -> CopyPipeline:
    router = ExecutionRouter(build_adapters(config.venues, dry_run=config.dry_run), repository)
    return CopyPipeline(
        repository=repository,
        router=router,
        rules=config.copy_rules(),
        default_venue=config.default_venue.strip().lower(),
    )


def build_poller(config: Settings, engine: Engine) -> EventPoller:
    repository = SqlRepository(engine)
    return EventPoller(
        source=JsonlEventSource(config.event_source_path),
        pipeline=build_pipeline(config, repository),
        repository=repository,
        stats=TraderStatsProvider(path=config.trader_stats_path),
        batch_size=config.poll_batch_size,
    )
