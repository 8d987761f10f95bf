"""Trader eligibility: ROI floor, consistency, hedging."""

from otmo_copier.config import CopyRuleConfig
from otmo_copier.schemas.events import EligibilityContext
from otmo_copier.services.rule_engine import GateDecision


def evaluate_eligibility(context: EligibilityContext, config: CopyRuleConfig) -> GateDecision:
    """Decide whether the trader behind an event may be copied.

    Stateless: the caller supplies a fresh context for every event.
    """
    if context.roi < config.min_roi:
        return GateDecision.reject(
            "eligibility:min_roi",
            f"trader {context.trader_id or '<unknown>'} ROI {context.roi:.4f} below minimum {config.min_roi:.4f}",
        )

    if config.require_consistency and not context.is_consistent:
        return GateDecision.reject(
            "eligibility:consistency",
            f"trader {context.trader_id or '<unknown>'} is not flagged consistent",
        )

    if config.disallow_hedge and context.is_hedging:
        return GateDecision.reject(
            "eligibility:hedge",
            f"trader {context.trader_id or '<unknown>'} is hedging",
        )

    return GateDecision.ok()
