#!/usr/bin/env python3
"""Move copier state (processed events, trade mappings, feed cursors) from a
SQLite file into PostgreSQL.

Usage:
    python scripts/migrate_sqlite_to_pg.py <sqlite_path> <postgres_url> [--force]

The destination must not already hold processed events: merging two
idempotency histories could let an event through twice. Pass --force to wipe
the destination tables first.
"""

import sys
from pathlib import Path

from sqlalchemy import func, select
from sqlmodel import SQLModel

from otmo_copier.database import create_db_and_tables, make_engine

TABLES = ["processed_event", "trade_mapping", "ingest_cursor"]


def migrate(sqlite_path: str, pg_url: str, force: bool = False):
    if not Path(sqlite_path).exists():
        print(f"ERROR: SQLite file not found: {sqlite_path}")
        sys.exit(1)

    src = make_engine(f"sqlite:///{sqlite_path}")
    dst = make_engine(pg_url)
    create_db_and_tables(src)
    create_db_and_tables(dst)
    tables = [SQLModel.metadata.tables[name] for name in TABLES]

    with dst.connect() as conn:
        existing = conn.execute(select(func.count()).select_from(tables[0])).scalar_one()
    if existing and not force:
        print(f"ERROR: destination already has {existing} processed events; rerun with --force to replace them")
        sys.exit(1)

    with src.connect() as src_conn, dst.begin() as dst_conn:
        for table in tables:
            rows = [dict(r) for r in src_conn.execute(select(table)).mappings()]
            dst_conn.execute(table.delete())
            if rows:
                dst_conn.execute(table.insert(), rows)
                # Copied ids are explicit, so move the serial past them
                dst_conn.exec_driver_sql(
                    f"SELECT setval(pg_get_serial_sequence('{table.name}', 'id'), "
                    f"{max(r['id'] for r in rows)})"
                )
            print(f"  {table.name}: {len(rows)} rows")

    print("Migration complete")


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--force"]
    if len(args) != 2:
        print(__doc__)
        sys.exit(1)
    migrate(args[0], args[1], force="--force" in sys.argv)
