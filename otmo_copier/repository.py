"""Durable store for processed events, trade mappings and ingest cursors.

The repository is the only owner of copier state. The pipeline asks it two
questions (has this key been attempted? what venue ids does this trade map
to?) and writes one outcome per event.

The unique constraint on ``processed_event.idempotency_key`` is the real
at-most-once guarantee: ``has_processed_event`` is only a cheap pre-check, and
a concurrent writer that slips past it gets a ``DuplicateEventError`` on
insert instead of a silent second row.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from otmo_copier.errors import DuplicateEventError
from otmo_copier.models.ingest_cursor import IngestCursor
from otmo_copier.models.processed_event import ProcessedEvent
from otmo_copier.models.trade_mapping import TradeMapping

logger = logging.getLogger(__name__)


class Repository(ABC):
    """Storage contract consumed by the pipeline and router."""

    @abstractmethod
    def has_processed_event(self, key: str) -> bool:
        """True iff a record with this key exists, whatever its status."""

    @abstractmethod
    def record_processed_event(self, record: ProcessedEvent) -> None:
        ...

    @abstractmethod
    def upsert_trade_mapping(self, mapping: TradeMapping) -> None:
        ...

    @abstractmethod
    def record_outcome(self, record: ProcessedEvent, mapping: TradeMapping | None = None) -> None:
        """Write the processed-event record and, optionally, its mapping atomically."""

    @abstractmethod
    def get_trade_mapping(self, source_trade_id: str, venue: str) -> TradeMapping | None:
        ...


class SqlRepository(Repository):
    """Repository over a SQLModel engine (SQLite or PostgreSQL)."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    # ------------------------------------------------------------------
    # Core contract
    # ------------------------------------------------------------------

    def has_processed_event(self, key: str) -> bool:
        with self._session() as session:
            row = session.exec(
                select(ProcessedEvent.id).where(ProcessedEvent.idempotency_key == key)
            ).first()
            return row is not None

    def record_processed_event(self, record: ProcessedEvent) -> None:
        self.record_outcome(record)

    def upsert_trade_mapping(self, mapping: TradeMapping) -> None:
        with self._session() as session:
            self._upsert_mapping(session, mapping)
            session.commit()

    def record_outcome(self, record: ProcessedEvent, mapping: TradeMapping | None = None) -> None:
        with self._session() as session:
            session.add(record)
            try:
                session.flush()
            except IntegrityError:
                session.rollback()
                logger.warning(f"[{record.idempotency_key}] Unique key conflict on record write")
                raise DuplicateEventError(record.idempotency_key)

            if mapping is not None:
                self._upsert_mapping(session, mapping)
            session.commit()

    def get_trade_mapping(self, source_trade_id: str, venue: str) -> TradeMapping | None:
        with self._session() as session:
            return session.exec(
                select(TradeMapping).where(
                    TradeMapping.source_trade_id == source_trade_id,
                    TradeMapping.venue == venue,
                )
            ).first()

    @staticmethod
    def _upsert_mapping(session: Session, mapping: TradeMapping):
        """Overwrite the (source_trade_id, venue) row in place, or insert it."""
        existing = session.exec(
            select(TradeMapping).where(
                TradeMapping.source_trade_id == mapping.source_trade_id,
                TradeMapping.venue == mapping.venue,
            )
        ).first()
        now = datetime.now(timezone.utc)
        if existing is None:
            session.add(TradeMapping(
                source_trade_id=mapping.source_trade_id,
                venue=mapping.venue,
                venue_order_id=mapping.venue_order_id,
                venue_position_id=mapping.venue_position_id,
                last_intent_type=mapping.last_intent_type,
                updated_at=now,
            ))
            return
        existing.venue_order_id = mapping.venue_order_id
        existing.venue_position_id = mapping.venue_position_id
        existing.last_intent_type = mapping.last_intent_type
        existing.updated_at = now
        session.add(existing)

    # ------------------------------------------------------------------
    # Read accessors for the status API
    # ------------------------------------------------------------------

    def get_processed_event(self, key: str) -> ProcessedEvent | None:
        with self._session() as session:
            return session.exec(
                select(ProcessedEvent).where(ProcessedEvent.idempotency_key == key)
            ).first()

    def list_processed_events(
        self,
        status: str | None = None,
        source_trade_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ProcessedEvent]:
        stmt = select(ProcessedEvent).order_by(ProcessedEvent.id.desc())
        if status is not None:
            stmt = stmt.where(ProcessedEvent.status == status)
        if source_trade_id is not None:
            stmt = stmt.where(ProcessedEvent.source_trade_id == source_trade_id)
        stmt = stmt.offset(offset).limit(limit)
        with self._session() as session:
            return list(session.exec(stmt).all())

    def count_by_status(self) -> dict[str, int]:
        with self._session() as session:
            rows = session.exec(
                select(ProcessedEvent.status, func.count(ProcessedEvent.id)).group_by(ProcessedEvent.status)
            ).all()
        return {status: count for status, count in rows}

    def list_trade_mappings(
        self,
        venue: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TradeMapping]:
        stmt = select(TradeMapping).order_by(TradeMapping.updated_at.desc())
        if venue is not None:
            stmt = stmt.where(TradeMapping.venue == venue)
        stmt = stmt.offset(offset).limit(limit)
        with self._session() as session:
            return list(session.exec(stmt).all())

    def count_trade_mappings(self) -> int:
        with self._session() as session:
            return session.exec(select(func.count(TradeMapping.id))).one()

    # ------------------------------------------------------------------
    # Ingest cursor (owned by the poller)
    # ------------------------------------------------------------------

    def get_cursor(self, source: str) -> int:
        return self.get_cursor_state(source)[0]

    def get_cursor_state(self, source: str) -> tuple[int, int]:
        """(next line offset, byte position of that line); (0, 0) for a new source."""
        with self._session() as session:
            cursor = session.exec(select(IngestCursor).where(IngestCursor.source == source)).first()
            return (cursor.position, cursor.byte_offset) if cursor else (0, 0)

    def set_cursor(self, source: str, position: int, byte_offset: int = 0) -> None:
        """Persist the cursor. A byte_offset of 0 makes the next read rescan from the top."""
        with self._session() as session:
            cursor = session.exec(select(IngestCursor).where(IngestCursor.source == source)).first()
            if cursor is None:
                cursor = IngestCursor(source=source)
            cursor.position = position
            cursor.byte_offset = byte_offset
            cursor.updated_at = datetime.now(timezone.utc)
            session.add(cursor)
            session.commit()
