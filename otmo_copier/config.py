"""Application configuration via environment variables."""

from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class CopyRuleConfig(BaseModel):
    """Risk and eligibility thresholds applied to every copied event."""

    allowed_markets: frozenset[str] = frozenset()  # empty = all markets permitted
    max_position_size_usd: float = 5000.0
    max_leverage: float = 10.0
    min_roi: float = 0.0
    require_consistency: bool = False
    disallow_hedge: bool = False

    model_config = {"frozen": True, "allow_inf_nan": False}


class Settings(BaseSettings):
    database_url: str = "sqlite:///./copier.db"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Venues
    default_venue: str = "gmx"
    venues: list[str] = ["gmx", "ostium"]
    dry_run: bool = True

    # Copy rules
    allowed_markets: list[str] = []
    max_position_size_usd: float = 5000.0
    max_leverage: float = 10.0

    # Trader eligibility
    min_roi: float = 0.0
    require_consistency: bool = False
    disallow_hedge: bool = False

    # Event feed
    event_source_path: str = str(PROJECT_ROOT / "data" / "otmo_events.jsonl")
    trader_stats_path: str = str(PROJECT_ROOT / "data" / "trader_stats.json")
    poll_interval_seconds: int = 15
    poll_batch_size: int = 100

    model_config = {"env_prefix": "COPIER_", "env_file": ".env"}

    def copy_rules(self) -> CopyRuleConfig:
        return CopyRuleConfig(
            allowed_markets=frozenset(m.strip().upper() for m in self.allowed_markets if m.strip()),
            max_position_size_usd=self.max_position_size_usd,
            max_leverage=self.max_leverage,
            min_roi=self.min_roi,
            require_consistency=self.require_consistency,
            disallow_hedge=self.disallow_hedge,
        )


settings = Settings()
