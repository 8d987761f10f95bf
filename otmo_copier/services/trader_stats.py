"""Trader-level aggregates used for eligibility checks.

Stats are produced outside the copier and dropped into a JSON file shaped
like ``{"<trader_id>": {"roi": 0.2, "consistent": true, "hedging": false}}``.
The file is re-read on every poll cycle so updates apply without a restart.
Entries that fail validation are dropped, so the trader falls back to the
unknown-trader context.
"""

import json
import logging
from pathlib import Path

import pydantic
from pydantic import BaseModel

from otmo_copier.schemas.events import EligibilityContext

logger = logging.getLogger(__name__)


class TraderStats(BaseModel):
    roi: float = 0.0
    consistent: bool = False
    hedging: bool = False

    # JSON booleans only, finite ROI
    model_config = {"strict": True, "allow_inf_nan": False, "extra": "ignore", "frozen": True}


def parse_stats(data: dict) -> dict[str, TraderStats]:
    """Validate raw stats entries, logging and dropping the bad ones."""
    parsed: dict[str, TraderStats] = {}
    for trader_id, entry in data.items():
        try:
            parsed[str(trader_id).strip()] = TraderStats.model_validate(entry)
        except pydantic.ValidationError as e:
            logger.warning(f"[{trader_id}] Dropping invalid trader stats: {e.error_count()} error(s)")
    return parsed


class TraderStatsProvider:
    def __init__(self, stats: dict[str, dict] | None = None, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._stats = parse_stats(stats or {})

    def refresh(self):
        """Reload stats from disk. Keeps the previous snapshot if the file is unreadable."""
        if self.path is None:
            return
        if not self.path.exists():
            logger.debug(f"Trader stats file {self.path} not found; using previous snapshot")
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Could not read trader stats from {self.path}: {e}")
            return
        if not isinstance(data, dict):
            logger.error(f"Trader stats file {self.path} must contain an object")
            return
        self._stats = parse_stats(data)
        logger.debug(f"Loaded stats for {len(self._stats)} of {len(data)} traders")

    def context_for(self, trader_id: str | None) -> EligibilityContext:
        """Eligibility context for one trader; unknown traders get zeroed stats."""
        trader_id = (trader_id or "").strip()
        stats = self._stats.get(trader_id) or TraderStats()
        return EligibilityContext(
            trader_id=trader_id,
            roi=stats.roi,
            is_consistent=stats.consistent,
            is_hedging=stats.hedging,
        )
