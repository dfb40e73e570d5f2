"""Dynamic price expectations, smoothed across rounds with an EMA."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from market_engine.core.enums import Segment
from market_engine.core.models import DynamicPriceExpectation, MarketState, TeamEntry
from market_engine.core.segments import get_segment_profile

if TYPE_CHECKING:
    from market_engine.config import MarketConfig

logger = logging.getLogger(__name__)


def launched_prices(teams: Sequence[TeamEntry], segment: Segment) -> list[float]:
    return [
        product.price
        for team in teams
        for product in team.state.products
        if product.segment == segment and product.launched
    ]


def price_floor(segment: Segment, config: MarketConfig) -> float:
    """Raw material plus labour plus overhead for one unit."""
    return (
        get_segment_profile(segment).raw_material_cost
        + config.labor_cost_per_unit
        + config.overhead_cost_per_unit
    )


def update_dynamic_pricing(
    market_state: MarketState,
    teams: Sequence[TeamEntry],
    config: MarketConfig,
) -> dict[Segment, DynamicPriceExpectation]:
    """Recompute every segment's price expectation from launched products.

    The previous round's expectation is the EMA baseline; without one, the
    current average seeds it. With no launched products the average falls
    back to the configured range midpoint and the segment is fully
    underserved.
    """
    inflation_factor = 1.0 + market_state.economic_conditions.inflation / 100.0
    alpha = config.dynamic_price_ema_alpha
    pricing: dict[Segment, DynamicPriceExpectation] = {}

    for segment in Segment:
        data = market_state.demand_for(segment)
        prices = launched_prices(teams, segment)
        count = len(prices)
        average = sum(prices) / count if count else data.price_range.midpoint

        previous = market_state.dynamic_pricing.get(segment)
        baseline = previous.expected_price if previous is not None else average
        expected = baseline * (1.0 - alpha) + average * alpha

        if count == 0:
            underserved = 1.0
        else:
            underserved = max(0.0, 1.0 - count / len(teams))

        pricing[segment] = DynamicPriceExpectation(
            expected_price=expected,
            underserved_factor=underserved,
            competitor_count=count,
            price_floor=price_floor(segment, config),
            price_ceiling=data.price_range.max_price * inflation_factor * config.price_ceiling_multiplier,
        )
        logger.debug(
            "%s: %d competitors, avg %.2f, expected %.2f, underserved %.2f",
            segment.label, count, average, expected, underserved,
        )
    return pricing
