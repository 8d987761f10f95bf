"""SQLModel database engine and session management."""

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from otmo_copier.config import settings

logger = logging.getLogger(__name__)


def make_engine(database_url: str, **kwargs) -> Engine:
    # SQLite needs check_same_thread=False; PostgreSQL does not
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
    return create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)


engine = make_engine(settings.database_url)


def _run_migrations(target: Engine):
    """Lightweight schema migrations for databases created by older releases."""
    from sqlalchemy import text

    inspector = inspect(target)
    tables = inspector.get_table_names()

    if "ingest_cursor" in tables:
        columns = {col["name"] for col in inspector.get_columns("ingest_cursor")}
        if "byte_offset" not in columns:
            logger.info("Migrating: adding ingest_cursor.byte_offset")
            with target.connect() as conn:
                conn.execute(text(
                    "ALTER TABLE ingest_cursor ADD COLUMN byte_offset INTEGER NOT NULL DEFAULT 0"
                ))
                conn.commit()

    if "trade_mapping" not in tables:
        return

    existing_indexes = inspector.get_indexes("trade_mapping")
    existing_uniques = inspector.get_unique_constraints("trade_mapping")
    has_unique = any(
        idx["name"] == "ix_trade_mapping_trade_venue_unique" for idx in existing_indexes
    ) or any(
        set(uc["column_names"]) == {"source_trade_id", "venue"} for uc in existing_uniques
    )
    if not has_unique:
        logger.info("Migrating: adding unique index on trade_mapping(source_trade_id, venue)")
        with target.connect() as conn:
            conn.execute(text(
                "CREATE UNIQUE INDEX ix_trade_mapping_trade_venue_unique "
                "ON trade_mapping (source_trade_id, venue)"
            ))
            conn.commit()


def create_db_and_tables(target: Engine | None = None):
    """Create all tables. Called on startup."""
    import otmo_copier.models  # noqa: F401  (populates metadata)

    target = target or engine
    SQLModel.metadata.create_all(target)
    _run_migrations(target)
