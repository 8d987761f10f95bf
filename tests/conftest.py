"""Shared fixtures: an in-memory database per test and event builders."""

import pytest
from sqlalchemy.pool import StaticPool

from otmo_copier.config import CopyRuleConfig
from otmo_copier.database import create_db_and_tables, make_engine
from otmo_copier.repository import SqlRepository
from otmo_copier.schemas.events import EligibilityContext, SourceTradeEvent


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def repository(engine) -> SqlRepository:
    return SqlRepository(engine)


@pytest.fixture
def rules() -> CopyRuleConfig:
    return CopyRuleConfig(
        allowed_markets=frozenset({"BTC-USD"}),
        max_position_size_usd=5000.0,
        max_leverage=10.0,
        min_roi=0.1,
    )


@pytest.fixture
def good_trader() -> EligibilityContext:
    return EligibilityContext(trader_id="alice", roi=0.2, is_consistent=True, is_hedging=False)


def make_event(**overrides) -> SourceTradeEvent:
    """Feed-shaped event; defaults match the canonical BTC open."""
    payload = {
        "id": "t1",
        "traderId": "alice",
        "type": "OPEN",
        "symbol": "BTC-USD",
        "positionSide": "LONG",
        "sizeUsd": 1000,
        "price": 64000.0,
        "leverage": 5,
        "timestamp": "2026-10-01T12:00:00Z",
    }
    payload.update(overrides)
    return SourceTradeEvent.model_validate({k: v for k, v in payload.items() if v is not None})
