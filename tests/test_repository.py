"""Tests for the SQL repository: idempotency records, mapping upserts, cursors."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, select

from otmo_copier.database import create_db_and_tables, make_engine
from otmo_copier.errors import DuplicateEventError
from otmo_copier.models.processed_event import ProcessedEvent
from otmo_copier.models.trade_mapping import TradeMapping
from otmo_copier.repository import SqlRepository


def _record(key: str = "t1:OPEN:gmx", status: str = "SUCCESS", error: str | None = None) -> ProcessedEvent:
    trade_id, event_type, venue = key.split(":")
    return ProcessedEvent(
        idempotency_key=key, source_trade_id=trade_id, event_type=event_type,
        venue=venue, status=status, error=error,
    )


def _mapping(intent: str = "OPEN", order_id: str = "o-1", position_id: str = "p-1") -> TradeMapping:
    return TradeMapping(
        source_trade_id="t1", venue="gmx", venue_order_id=order_id,
        venue_position_id=position_id, last_intent_type=intent,
    )


# ---------------------------------------------------------------------------
# 1. Processed events
# ---------------------------------------------------------------------------

class TestProcessedEvents:
    def test_unknown_key_not_processed(self, repository):
        assert repository.has_processed_event("t1:OPEN:gmx") is False

    @pytest.mark.parametrize("status", ["SUCCESS", "FAILED", "SKIPPED"])
    def test_any_status_counts_as_processed(self, repository, status):
        repository.record_processed_event(_record(status=status))
        assert repository.has_processed_event("t1:OPEN:gmx") is True

    def test_second_record_for_same_key_conflicts(self, repository, engine):
        repository.record_processed_event(_record())
        with pytest.raises(DuplicateEventError) as exc_info:
            repository.record_processed_event(_record(status="FAILED"))
        assert exc_info.value.idempotency_key == "t1:OPEN:gmx"

        with Session(engine) as session:
            rows = session.exec(select(ProcessedEvent)).all()
        assert len(rows) == 1
        assert rows[0].status == "SUCCESS"

    def test_conflicting_outcome_does_not_write_mapping(self, repository):
        repository.record_processed_event(_record())
        with pytest.raises(DuplicateEventError):
            repository.record_outcome(_record(), _mapping())
        assert repository.get_trade_mapping("t1", "gmx") is None

    def test_record_outcome_writes_both(self, repository):
        repository.record_outcome(_record(), _mapping())
        assert repository.has_processed_event("t1:OPEN:gmx")
        assert repository.get_trade_mapping("t1", "gmx").venue_order_id == "o-1"

    def test_list_and_count(self, repository):
        repository.record_processed_event(_record("t1:OPEN:gmx", "SUCCESS"))
        repository.record_processed_event(_record("t2:OPEN:gmx", "SKIPPED", "rule:max_size"))
        repository.record_processed_event(_record("t3:OPEN:gmx", "SKIPPED", "eligibility:min_roi"))
        repository.record_processed_event(_record("t4:OPEN:bad", "FAILED", "unknown_venue"))

        assert repository.count_by_status() == {"SUCCESS": 1, "SKIPPED": 2, "FAILED": 1}

        skipped = repository.list_processed_events(status="SKIPPED")
        assert [r.idempotency_key for r in skipped] == ["t3:OPEN:gmx", "t2:OPEN:gmx"]

        page = repository.list_processed_events(limit=2, offset=1)
        assert [r.idempotency_key for r in page] == ["t3:OPEN:gmx", "t2:OPEN:gmx"]

        assert repository.get_processed_event("t4:OPEN:bad").error == "unknown_venue"
        assert repository.get_processed_event("nope") is None


# ---------------------------------------------------------------------------
# 2. Trade mappings
# ---------------------------------------------------------------------------

class TestTradeMappings:
    def test_upsert_overwrites_instead_of_appending(self, repository):
        repository.upsert_trade_mapping(_mapping("OPEN", "o-1", "p-1"))
        repository.upsert_trade_mapping(_mapping("INCREASE", "o-2", "p-1"))

        assert repository.count_trade_mappings() == 1
        mapping = repository.get_trade_mapping("t1", "gmx")
        assert mapping.venue_order_id == "o-2"
        assert mapping.last_intent_type == "INCREASE"

    def test_mappings_are_per_venue(self, repository):
        repository.upsert_trade_mapping(_mapping())
        repository.upsert_trade_mapping(TradeMapping(
            source_trade_id="t1", venue="ostium", venue_order_id="o-os",
            venue_position_id=None, last_intent_type="OPEN",
        ))
        assert repository.count_trade_mappings() == 2
        assert len(repository.list_trade_mappings(venue="ostium")) == 1

    def test_upsert_bumps_updated_at(self, repository):
        repository.upsert_trade_mapping(_mapping())
        first = repository.get_trade_mapping("t1", "gmx").updated_at
        repository.upsert_trade_mapping(_mapping("CLOSE"))
        assert repository.get_trade_mapping("t1", "gmx").updated_at >= first


# ---------------------------------------------------------------------------
# 3. Cursor and schema
# ---------------------------------------------------------------------------

def test_cursor_defaults_to_zero_and_persists(repository):
    assert repository.get_cursor("jsonl:feed.jsonl") == 0
    repository.set_cursor("jsonl:feed.jsonl", 7)
    repository.set_cursor("jsonl:feed.jsonl", 9)
    assert repository.get_cursor("jsonl:feed.jsonl") == 9
    assert repository.get_cursor("jsonl:other.jsonl") == 0


def test_schema_has_unique_constraints(engine):
    inspector = inspect(engine)
    assert {"processed_event", "trade_mapping", "ingest_cursor"} <= set(inspector.get_table_names())
    uniques = inspector.get_unique_constraints("trade_mapping")
    assert any(set(uc["column_names"]) == {"source_trade_id", "venue"} for uc in uniques)


def test_cursor_state_carries_byte_offset(repository):
    assert repository.get_cursor_state("jsonl:feed.jsonl") == (0, 0)
    repository.set_cursor("jsonl:feed.jsonl", 4, 512)
    assert repository.get_cursor_state("jsonl:feed.jsonl") == (4, 512)
    repository.set_cursor("jsonl:feed.jsonl", 0)
    assert repository.get_cursor_state("jsonl:feed.jsonl") == (0, 0)


def test_migration_adds_byte_offset_to_old_cursor_table():
    old = make_engine("sqlite://", poolclass=StaticPool)
    with old.connect() as conn:
        conn.execute(text(
            "CREATE TABLE ingest_cursor (id INTEGER PRIMARY KEY, source VARCHAR UNIQUE, "
            "position INTEGER, updated_at DATETIME)"
        ))
        conn.execute(text("INSERT INTO ingest_cursor (source, position) VALUES ('jsonl:feed.jsonl', 3)"))
        conn.commit()

    create_db_and_tables(old)

    columns = {col["name"] for col in inspect(old).get_columns("ingest_cursor")}
    assert "byte_offset" in columns
    assert SqlRepository(old).get_cursor_state("jsonl:feed.jsonl") == (3, 0)
