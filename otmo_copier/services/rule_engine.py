"""Static copy rules: market allowlist, size cap, leverage cap.

Rules are evaluated in a fixed order and the first violation wins, so the
reported reason is deterministic for a given input.
"""

from dataclasses import dataclass

from otmo_copier.config import CopyRuleConfig
from otmo_copier.schemas.events import NormalizedTradeEvent


@dataclass(frozen=True)
class GateDecision:
    passed: bool
    reason: str | None = None  # machine-readable, e.g. "rule:max_size"
    message: str | None = None  # human-readable detail

    @classmethod
    def ok(cls) -> "GateDecision":
        return cls(passed=True)

    @classmethod
    def reject(cls, reason: str, message: str) -> "GateDecision":
        return cls(passed=False, reason=reason, message=message)


def evaluate_rules(event: NormalizedTradeEvent, config: CopyRuleConfig) -> GateDecision:
    """Check the event against the configured copy rules."""
    # Market allowlist (empty = all markets permitted)
    if config.allowed_markets and event.symbol not in config.allowed_markets:
        return GateDecision.reject(
            "rule:market_allowlist",
            f"market {event.symbol or '<none>'} is not in the allowlist",
        )

    # Position size cap
    if event.size_usd > config.max_position_size_usd:
        return GateDecision.reject(
            "rule:max_size",
            f"size ${event.size_usd:.2f} exceeds cap ${config.max_position_size_usd:.2f}",
        )

    # Leverage cap
    if event.leverage > config.max_leverage:
        return GateDecision.reject(
            "rule:max_leverage",
            f"leverage {event.leverage:g}x exceeds cap {config.max_leverage:g}x",
        )

    return GateDecision.ok()
