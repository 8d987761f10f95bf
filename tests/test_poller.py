"""Tests for the poll cycle, its cursor handling and the scheduled job wrapper."""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from otmo_copier.config import CopyRuleConfig
from otmo_copier.engine.pipeline import CopyPipeline
from otmo_copier.engine.poller import EventPoller, PollSummary
from otmo_copier.engine.router import ExecutionRouter
from otmo_copier.engine.scheduler import run_poll_cycle
from otmo_copier.errors import DuplicateEventError
from otmo_copier.services.event_source import JsonlEventSource
from otmo_copier.services.trader_stats import TraderStatsProvider
from otmo_copier.services.venues.dry_run import DryRunAdapter

STATS = {
    "alice": {"roi": 0.2, "consistent": True, "hedging": False},
    "bob": {"roi": 0.05, "consistent": True, "hedging": False},
}


def _line(trade_id: str, trader: str = "alice", **extra) -> str:
    payload = {"id": trade_id, "traderId": trader, "type": "OPEN", "symbol": "BTC-USD",
               "sizeUsd": 1000, "price": 64000, "leverage": 5}
    payload.update(extra)
    return json.dumps(payload)


def _append(path, *lines: str):
    with path.open("a", encoding="utf-8") as fh:
        for line in lines:
            fh.write(line + "\n")


def _poller(path, repository, rules, batch_size: int = 100, pipeline=None, stats=None) -> EventPoller:
    if pipeline is None:
        router = ExecutionRouter({"gmx": DryRunAdapter("gmx")}, repository)
        pipeline = CopyPipeline(repository, router, rules, "gmx")
    return EventPoller(
        source=JsonlEventSource(path),
        pipeline=pipeline,
        repository=repository,
        stats=TraderStatsProvider(STATS if stats is None else stats),
        batch_size=batch_size,
    )


# ---------------------------------------------------------------------------
# 1. Batch processing
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_processes_batch_in_order_and_advances_cursor(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"), _line("t2", trader="bob"), _line("t3", sizeUsd=10000))
    poller = _poller(feed, repository, rules)

    summary = await poller.run_once()

    assert summary.read == 3
    assert summary.by_status == {"SUCCESS": 1, "SKIPPED": 2}
    assert summary.cursor == 3
    assert repository.get_cursor("jsonl:feed.jsonl") == 3
    assert repository.get_processed_event("t2:OPEN:gmx").error == "eligibility:min_roi"
    assert repository.get_processed_event("t3:OPEN:gmx").error == "rule:max_size"


@pytest.mark.asyncio
async def test_next_cycle_only_sees_new_events(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"))
    poller = _poller(feed, repository, rules)
    await poller.run_once()

    empty = await poller.run_once()
    assert empty.read == 0
    assert empty.cursor == 1

    _append(feed, _line("t2"))
    summary = await poller.run_once()
    assert summary.read == 1
    assert repository.has_processed_event("t2:OPEN:gmx")


@pytest.mark.asyncio
async def test_batch_size_bounds_each_cycle(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, *[_line(f"t{i}") for i in range(5)])
    poller = _poller(feed, repository, rules, batch_size=2)

    first = await poller.run_once()
    second = await poller.run_once()

    assert (first.read, first.cursor) == (2, 2)
    assert (second.read, second.cursor) == (2, 4)


@pytest.mark.asyncio
async def test_malformed_lines_are_dropped_and_skipped_past(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, "{garbage", json.dumps({"type": "OPEN"}), _line("t1"))
    poller = _poller(feed, repository, rules)

    summary = await poller.run_once()

    assert summary.invalid == 2
    assert summary.by_status == {"SUCCESS": 1}
    assert summary.cursor == 3
    assert len(repository.list_processed_events()) == 1


@pytest.mark.asyncio
async def test_replay_after_cursor_reset_is_all_duplicates(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"), _line("t2", sizeUsd=10000))
    poller = _poller(feed, repository, rules)
    await poller.run_once()

    repository.set_cursor("jsonl:feed.jsonl", 0)
    summary = await poller.run_once()

    assert summary.duplicates == 2
    assert summary.by_status == {}
    assert len(repository.list_processed_events()) == 2
    assert repository.count_trade_mappings() == 1


@pytest.mark.asyncio
async def test_cursor_records_byte_position_for_seeking(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"), _line("t2"))
    poller = _poller(feed, repository, rules)
    await poller.run_once()

    assert repository.get_cursor_state("jsonl:feed.jsonl") == (2, feed.stat().st_size)

    _append(feed, _line("t3"))
    summary = await poller.run_once()
    assert summary.read == 1
    assert repository.has_processed_event("t3:OPEN:gmx")
    assert repository.get_cursor_state("jsonl:feed.jsonl") == (3, feed.stat().st_size)


@pytest.mark.asyncio
async def test_cursor_without_byte_position_rescans_by_line(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"), _line("t2"))
    repository.set_cursor("jsonl:feed.jsonl", 1)
    poller = _poller(feed, repository, rules)

    summary = await poller.run_once()

    assert summary.read == 1
    assert not repository.has_processed_event("t1:OPEN:gmx")
    assert repository.has_processed_event("t2:OPEN:gmx")


# ---------------------------------------------------------------------------
# 2. Failure handling
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_write_conflict_counted_and_cursor_advances(tmp_path, repository):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"))
    pipeline = AsyncMock(spec=CopyPipeline)
    pipeline.process.side_effect = DuplicateEventError("t1:OPEN:gmx")
    poller = _poller(feed, repository, CopyRuleConfig(), pipeline=pipeline)

    summary = await poller.run_once()

    assert summary.conflicts == 1
    assert repository.get_cursor("jsonl:feed.jsonl") == 1


@pytest.mark.asyncio
async def test_storage_failure_stops_cycle_before_cursor_moves(tmp_path, repository):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1"), _line("t2"))
    pipeline = AsyncMock(spec=CopyPipeline)
    pipeline.process.side_effect = RuntimeError("database is locked")
    poller = _poller(feed, repository, CopyRuleConfig(), pipeline=pipeline)

    with pytest.raises(RuntimeError):
        await poller.run_once()

    assert repository.get_cursor("jsonl:feed.jsonl") == 0
    assert pipeline.process.await_count == 1


@pytest.mark.asyncio
async def test_nan_size_from_feed_is_dropped_not_copied(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    feed.write_text(
        '{"id": "t9", "traderId": "alice", "type": "OPEN", "symbol": "BTC-USD", "sizeUsd": NaN, "leverage": 5}\n'
        + _line("t10", leverage=float("nan")) + "\n",
        encoding="utf-8",
    )
    poller = _poller(feed, repository, rules)

    summary = await poller.run_once()

    assert summary.invalid == 2
    assert summary.by_status == {}
    assert summary.cursor == 2
    assert repository.list_processed_events() == []


@pytest.mark.asyncio
async def test_undecodable_line_does_not_stall_feed(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    feed.write_bytes(b'{"id": "t1", "symbol": "\xff"}\n' + _line("t2").encode() + b"\n")
    poller = _poller(feed, repository, rules)

    summary = await poller.run_once()

    assert summary.invalid == 1
    assert summary.by_status == {"SUCCESS": 1}
    assert repository.has_processed_event("t2:OPEN:gmx")
    assert repository.get_cursor("jsonl:feed.jsonl") == 2


@pytest.mark.asyncio
async def test_mistyped_trader_stats_fall_back_to_unknown_trader(tmp_path, repository, rules):
    feed = tmp_path / "feed.jsonl"
    _append(feed, _line("t1", trader="bob"), _line("t2", trader="carol"))
    stats = {
        "bob": {"roi": "n/a"},
        "carol": {"roi": 0.5, "consistent": "false", "hedging": "false"},
    }
    strict = rules.model_copy(update={"min_roi": 0.0, "require_consistency": True})
    poller = _poller(feed, repository, strict, stats=stats)

    summary = await poller.run_once()

    assert summary.by_status == {"SKIPPED": 2}
    assert summary.cursor == 2
    assert repository.get_processed_event("t1:OPEN:gmx").error == "eligibility:consistency"
    assert repository.get_processed_event("t2:OPEN:gmx").error == "eligibility:consistency"


@pytest.mark.asyncio
async def test_overlapping_cycle_is_skipped(tmp_path, repository, rules):
    poller = _poller(tmp_path / "feed.jsonl", repository, rules)

    async with poller._lock:
        summary = await poller.run_once()

    assert summary.skipped_overlap is True
    assert summary.read == 0


@pytest.mark.asyncio
async def test_scheduled_job_logs_and_swallows_errors(caplog):
    poller = AsyncMock(spec=EventPoller)
    poller.run_once.side_effect = RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        await run_poll_cycle(poller)

    assert "Poll cycle error: boom" in caplog.text


def test_summary_as_dict():
    summary = PollSummary(read=2, invalid=1)
    summary.by_status["SUCCESS"] += 1
    assert summary.as_dict()["by_status"] == {"SUCCESS": 1}
    assert summary.as_dict()["invalid"] == 1
