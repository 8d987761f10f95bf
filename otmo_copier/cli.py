"""CLI tool for admin operations.

Usage:
    python -m otmo_copier.cli init-db
    python -m otmo_copier.cli poll-once
    python -m otmo_copier.cli status
"""

import asyncio
import json
import sys

from otmo_copier.config import settings
from otmo_copier.database import engine, create_db_and_tables
from otmo_copier.utils.logging import setup_logging


def init_db():
    """Create the copier tables."""
    create_db_and_tables()
    print(f"Tables ready at {settings.database_url}")


def poll_once():
    """Run a single poll cycle against the configured feed and exit."""
    from otmo_copier.engine.factory import build_poller

    create_db_and_tables()
    poller = build_poller(settings, engine)
    summary = asyncio.run(poller.run_once())
    print(json.dumps(summary.as_dict(), indent=2))


def status():
    """Print processed-event counts and the feed cursor."""
    from otmo_copier.repository import SqlRepository
    from otmo_copier.services.event_source import JsonlEventSource

    create_db_and_tables()
    repository = SqlRepository(engine)
    by_status = repository.count_by_status()
    source = JsonlEventSource(settings.event_source_path)
    print(f"Feed: {settings.event_source_path} (cursor {repository.get_cursor(source.name)})")
    print(f"Processed events: {sum(by_status.values())}")
    for name in sorted(by_status):
        print(f"  {name}: {by_status[name]}")
    print(f"Trade mappings: {repository.count_trade_mappings()}")


COMMANDS = {
    "init-db": init_db,
    "poll-once": poll_once,
    "status": status,
}


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m otmo_copier.cli <command>")
        print(f"Commands: {', '.join(COMMANDS)}")
        sys.exit(1)

    command = COMMANDS.get(sys.argv[1])
    if command is None:
        print(f"Unknown command: {sys.argv[1]}")
        sys.exit(1)

    setup_logging()
    command()


if __name__ == "__main__":
    main()
