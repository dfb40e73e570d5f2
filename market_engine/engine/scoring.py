"""Per-team competitive position scoring.

A position is five weighted axis scores (price, quality, brand, ESG,
features) plus two additive bonuses. The five weights for a segment sum to
100, so a perfect product on every axis scores roughly 100 before bonuses.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from market_engine.core.enums import Segment, TechFamily
from market_engine.core.models import (
    DynamicPriceExpectation,
    FeatureSet,
    MarketState,
    PriceRange,
    Product,
    TeamState,
)
from market_engine.core.results import TeamMarketPosition
from market_engine.core.segments import FeaturePreferences, get_segment_profile

if TYPE_CHECKING:
    from market_engine.config import MarketConfig


def diminishing_multiplier(ratio: float, config: MarketConfig) -> float:
    """Linear up to 1.0, square-root diminishing returns above, then capped."""
    if ratio <= 1.0:
        multiplier = ratio
    else:
        multiplier = 1.0 + math.sqrt(ratio - 1.0) * config.excess_return_rate
    return min(config.quality_feature_bonus_cap, multiplier)


# -- price --

def dynamic_price_score(price: float, expectation: DynamicPriceExpectation, config: MarketConfig) -> float:
    """Unweighted 0-1 price score against an EMA price expectation."""
    advantage = (expectation.expected_price - price) / expectation.expected_price
    sigmoid = math.tanh(advantage * config.dynamic_price_sensitivity) * 0.5 + 0.5
    score = min(1.0, sigmoid + expectation.underserved_factor * config.underserved_price_bonus)

    floor_multiplier = 1.0
    if price < expectation.price_floor and expectation.price_floor > 0:
        below_floor = (expectation.price_floor - price) / expectation.price_floor
        floor_multiplier = max(config.dynamic_floor_min_multiplier, 1.0 - below_floor)
    return score * floor_multiplier


def static_price_score(price: float, quality: float, price_range: PriceRange, config: MarketConfig) -> float:
    """Unweighted 0-1 price score against the configured segment range.

    Quality widens the acceptable upper bound; prices far below the range
    minimum are penalised on a smooth ramp rather than a cliff.
    """
    adjusted_max = price_range.max_price * (1.0 + quality * config.quality_price_tolerance)
    width = adjusted_max - price_range.min_price
    position = max(0.0, (adjusted_max - price) / width) if width > 0 else 0.5

    multiplier = 1.0
    if price < price_range.min_price:
        below_min = price_range.min_price - price
        floor_threshold = price_range.min_price * config.price_floor_penalty_threshold
        if below_min > floor_threshold:
            penalty_scale = min(1.0, (below_min - floor_threshold) / floor_threshold)
            multiplier = 1.0 - penalty_scale * config.price_floor_penalty_max
    return min(1.0, position) * multiplier


def price_score(product: Product, segment: Segment, market_state: MarketState, config: MarketConfig) -> float:
    weight = get_segment_profile(segment).weights.price
    expectation = market_state.dynamic_pricing.get(segment)
    if expectation is not None and expectation.expected_price > 0:
        return dynamic_price_score(product.price, expectation, config) * weight
    price_range = market_state.demand_for(segment).price_range
    return static_price_score(product.price, product.quality, price_range, config) * weight


# -- quality / brand / esg / features --

def quality_score(product: Product, segment: Segment, config: MarketConfig) -> float:
    profile = get_segment_profile(segment)
    ratio = product.quality / profile.quality_expectation
    return diminishing_multiplier(ratio, config) * profile.weights.quality


def brand_score(brand_value: float, segment: Segment, config: MarketConfig) -> float:
    """sqrt(brand) with a gentle critical-mass adjustment at either end."""
    multiplier = 1.0
    if brand_value > config.brand_critical_mass_high:
        multiplier = config.brand_high_multiplier
    elif brand_value < config.brand_critical_mass_low:
        multiplier = config.brand_low_multiplier
    weight = get_segment_profile(segment).weights.brand
    return math.sqrt(max(0.0, brand_value)) * weight * multiplier


def esg_score(team_esg: float, segment: Segment, market_state: MarketState, config: MarketConfig) -> float:
    premium = market_state.market_pressures.sustainability_premium
    return (team_esg / config.esg_scale) * premium * get_segment_profile(segment).weights.esg


def feature_match(features: FeatureSet, preferences: FeaturePreferences) -> float:
    """Dot product of 0-1 capabilities with a segment's preference row."""
    return sum((features.value(f) / 100.0) * preferences.weight(f) for f in TechFamily)


def feature_score(product: Product, segment: Segment, config: MarketConfig) -> float:
    profile = get_segment_profile(segment)
    if product.feature_set is not None:
        ratio = feature_match(product.feature_set, profile.feature_preferences)
    else:
        ratio = product.features / 100.0
    return diminishing_multiplier(ratio, config) * profile.weights.features


# -- additive bonuses --

def flexibility_criteria_met(state: TeamState, config: MarketConfig) -> int:
    """How many of the four diversification criteria the team meets."""
    factory = state.primary_factory
    efficiency = factory.efficiency if factory is not None else 0.0
    criteria = (
        state.rd_budget >= config.flexibility_min_rd,
        state.brand_value >= config.flexibility_min_brand,
        efficiency >= config.flexibility_min_efficiency,
        state.products_at_quality(config.flexibility_product_quality) >= config.flexibility_min_products,
    )
    return sum(criteria)


def flexibility_bonus_rate(state: TeamState, config: MarketConfig) -> float:
    met = flexibility_criteria_met(state, config)
    if met >= 4:
        return config.flexibility_bonus_full
    if met >= 3:
        return config.flexibility_bonus_partial
    return 0.0


def calculate_team_position(
    team_id: str,
    state: TeamState,
    segment: Segment,
    market_state: MarketState,
    config: MarketConfig,
) -> TeamMarketPosition:
    """Score *team_id*'s product in *segment*. No product means an all-zero position."""
    product = state.product_for(segment)
    if product is None:
        return TeamMarketPosition(team_id=team_id, segment=segment, product=None)

    p_score = price_score(product, segment, market_state, config)
    q_score = quality_score(product, segment, config)
    b_score = brand_score(state.brand_value, segment, config)
    e_score = esg_score(state.esg_score, segment, market_state, config)
    f_score = feature_score(product, segment, config)

    total = p_score + q_score + b_score + e_score + f_score
    total += product.quality * config.quality_market_share_bonus
    total += total * flexibility_bonus_rate(state, config)

    return TeamMarketPosition(
        team_id=team_id,
        segment=segment,
        product=product,
        price_score=p_score,
        quality_score=q_score,
        brand_score=b_score,
        esg_score=e_score,
        feature_score=f_score,
        total_score=total,
    )
