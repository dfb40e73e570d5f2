"""Demand allocation: segment demand, softmax shares, rubber banding."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Mapping, Sequence

from market_engine.core.enums import Segment
from market_engine.core.models import MarketState

if TYPE_CHECKING:
    from market_engine.config import MarketConfig
    from market_engine.systems.context import EngineContext

logger = logging.getLogger(__name__)


def calculate_market_shares(scores: Sequence[float], temperature: float) -> list[float]:
    """Softmax over positive scores; non-positive scores get zero share.

    Shares sum to 1 across every entry, including zero-scoring ones. When
    nothing scores above zero the segment is split equally among all
    entries. An empty input yields an empty list.
    """
    if not scores:
        return []
    equal = [1.0 / len(scores)] * len(scores)

    positive = [s for s in scores if s > 0]
    if not positive:
        return equal

    top = max(positive)
    weights = [math.exp((s - top) / temperature) if s > 0 else 0.0 for s in scores]
    total = sum(weights)
    if total == 0:
        return equal
    return [w / total for w in weights]


def calculate_demand(market_state: MarketState, ctx: EngineContext, config: MarketConfig) -> dict[Segment, int]:
    """Economy-adjusted demand per segment.

    Draws exactly one value from the market stream per segment, in segment
    order.
    """
    econ = market_state.economic_conditions
    gdp_mult = 1.0 + econ.gdp / 100.0
    confidence_mult = econ.consumer_confidence / config.confidence_baseline
    inflation_mult = 1.0 - (econ.inflation / 100.0) * config.inflation_demand_weight
    market_rng = ctx.rng.market

    demand: dict[Segment, int] = {}
    for segment in Segment:
        data = market_state.demand_for(segment)
        noise = (1.0 - config.demand_noise) + market_rng.next() * (2 * config.demand_noise)
        adjusted = data.total_demand * (
            gdp_mult * confidence_mult * inflation_mult * (1.0 + data.growth_rate) * noise
        )
        demand[segment] = max(0, math.floor(adjusted))
    return demand


def allocate_units(segment_demand: int, share: float) -> int:
    return max(0, math.floor(segment_demand * share))


# -- rubber banding --

def average_share(shares: Mapping[Segment, float]) -> float:
    """Mean share across every segment (absent segments count as zero)."""
    return sum(shares.get(s, 0.0) for s in Segment) / len(Segment)


def rubber_band_multipliers(
    market_shares: Mapping[str, Mapping[Segment, float]],
    round_number: int,
    config: MarketConfig,
) -> dict[str, float]:
    """Share multipliers for teams outside the balance band.

    Returns an empty dict before ``rubber_band_start_round`` or when every
    team sits within ``[mean*threshold, mean*leading_ratio]``.
    """
    if round_number < config.rubber_band_start_round or not market_shares:
        return {}

    averages = {team_id: average_share(shares) for team_id, shares in market_shares.items()}
    mean = sum(averages.values()) / len(averages)
    low = mean * config.rubber_band_threshold
    high = mean * config.rubber_band_leading_ratio

    multipliers: dict[str, float] = {}
    for team_id, avg in averages.items():
        if avg < low:
            multipliers[team_id] = config.rubber_band_trailing_boost
        elif avg > high:
            multipliers[team_id] = config.rubber_band_leading_penalty
    if multipliers:
        logger.debug("Rubber banding round %d: mean share %.4f, adjusting %s", round_number, mean, multipliers)
    return multipliers


def corrected_share(share: float, multiplier: float) -> float:
    return min(1.0, max(0.0, share * multiplier))
