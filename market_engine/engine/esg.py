"""ESG risk adjustment. Downside only: low scores lose revenue, high scores are baseline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from market_engine.core.results import EsgEvent

if TYPE_CHECKING:
    from market_engine.config import MarketConfig


def esg_penalty_rate(esg_score: float, config: MarketConfig) -> float:
    """Linear from the max rate at score 0 to the min rate at the threshold."""
    ratio = max(0.0, esg_score) / config.esg_penalty_threshold
    return config.esg_penalty_max - ratio * (config.esg_penalty_max - config.esg_penalty_min)


def assess_esg_risk(esg_score: float, revenue: float, config: MarketConfig) -> EsgEvent | None:
    """Penalty event below the threshold, ``None`` at or above it.

    A team below the threshold with zero revenue still gets an event, with
    an amount of exactly 0.
    """
    if esg_score >= config.esg_penalty_threshold:
        return None
    rate = esg_penalty_rate(esg_score, config)
    amount = -revenue * rate if revenue > 0 else 0.0
    return EsgEvent(
        penalty_rate=rate,
        amount=amount,
        message=(
            f"ESG crisis (boycotts/fines): -{rate * 100:.1f}% revenue "
            f"(${abs(amount) / 1_000_000:.1f}M)"
        ),
    )
