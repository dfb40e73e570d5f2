"""Tests for per-team position scoring and the segment tables.

Covers:
- Segment tables: weights sum to 100, exhaustive lookups, validation
- Static price scoring (quality tolerance, anti-dumping ramp)
- Dynamic price scoring (tanh curve, underserved bonus, floor multiplier)
- Quality / feature diminishing returns and cap
- Brand critical mass, ESG premium
- Additive quality bonus and flexibility bonus
- Missing product -> all-zero position
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import dataclasses
import math

import pytest

from market_engine.config import DEFAULT_CONFIG
from market_engine.core.enums import DevelopmentStatus, Segment, TechFamily
from market_engine.core.models import DynamicPriceExpectation, Factory, FeatureSet, PriceRange
from market_engine.core.segments import (
    SEGMENT_PROFILES,
    FeaturePreferences,
    ScoringWeights,
    get_segment_profile,
    price_elasticity,
)
from market_engine.engine.scoring import (
    brand_score,
    calculate_team_position,
    diminishing_multiplier,
    dynamic_price_score,
    esg_score,
    feature_match,
    feature_score,
    flexibility_bonus_rate,
    flexibility_criteria_met,
    price_score,
    quality_score,
    static_price_score,
)
from tests.helpers.market_arena import market, product, team

CFG = DEFAULT_CONFIG


def _expectation(expected: float, underserved: float = 0.0, floor: float = 85.0) -> DynamicPriceExpectation:
    return DynamicPriceExpectation(
        expected_price=expected,
        underserved_factor=underserved,
        competitor_count=2,
        price_floor=floor,
        price_ceiling=expected * 2,
    )


class TestSegmentTables:

    def test_every_segment_registered(self):
        assert set(SEGMENT_PROFILES) == set(Segment)

    def test_weights_sum_to_100(self):
        for profile in SEGMENT_PROFILES.values():
            w = profile.weights
            assert w.price + w.quality + w.brand + w.esg + w.features == pytest.approx(100)

    def test_budget_is_price_led_professional_quality_led(self):
        budget = get_segment_profile(Segment.BUDGET).weights
        pro = get_segment_profile(Segment.PROFESSIONAL).weights
        assert budget.price == max(budget.price, budget.quality, budget.brand, budget.esg, budget.features)
        assert pro.quality == max(pro.price, pro.quality, pro.brand, pro.esg, pro.features)

    def test_feature_preferences_sum_to_one(self):
        for profile in SEGMENT_PROFILES.values():
            total = sum(profile.feature_preferences.weight(f) for f in TechFamily)
            assert total == pytest.approx(1.0)

    def test_invalid_weights_rejected(self):
        with pytest.raises(ValueError):
            ScoringWeights(price=50, quality=50, brand=10, esg=0, features=0)

    def test_invalid_preferences_rejected(self):
        with pytest.raises(ValueError):
            FeaturePreferences(battery=0.5, camera=0.5, ai=0.5, durability=0, display=0, connectivity=0)

    def test_elasticities(self):
        assert price_elasticity(Segment.BUDGET) == 2.5
        assert price_elasticity(Segment.GENERAL) == 1.8
        assert price_elasticity(Segment.ENTHUSIAST) == 1.2
        assert price_elasticity(Segment.PROFESSIONAL) == 0.8
        assert price_elasticity(Segment.ACTIVE_LIFESTYLE) == 1.5


class TestStaticPrice:
    """Budget range 100-300."""

    RANGE = PriceRange(100, 300)

    def test_mid_range(self):
        # adjusted max = 300 * (1 + 50*0.002) = 330
        expected = (330 - 200) / (330 - 100)
        assert static_price_score(200, 50, self.RANGE, CFG) == pytest.approx(expected)

    def test_quality_widens_tolerance(self):
        assert static_price_score(300, 100, self.RANGE, CFG) > static_price_score(300, 0, self.RANGE, CFG)

    def test_above_adjusted_max_scores_zero(self):
        assert static_price_score(400, 50, self.RANGE, CFG) == 0.0

    def test_slightly_below_min_not_penalised(self):
        assert static_price_score(90, 50, self.RANGE, CFG) == pytest.approx(1.0)

    def test_far_below_min_full_penalty(self):
        assert static_price_score(70, 50, self.RANGE, CFG) == pytest.approx(0.7)

    def test_penalty_ramps_smoothly(self):
        # 15 below threshold + 7.5 excess -> half penalty
        assert static_price_score(77.5, 50, self.RANGE, CFG) == pytest.approx(0.85)

    def test_degenerate_range(self):
        assert static_price_score(100, 0, PriceRange(100, 0), CFG) == pytest.approx(0.5)


class TestDynamicPrice:

    def test_at_expected_price(self):
        assert dynamic_price_score(200, _expectation(200), CFG) == pytest.approx(0.5)

    def test_cheaper_scores_higher(self):
        assert dynamic_price_score(150, _expectation(200), CFG) > dynamic_price_score(250, _expectation(200), CFG)

    def test_underserved_bonus(self):
        assert dynamic_price_score(200, _expectation(200, underserved=1.0), CFG) == pytest.approx(0.75)

    def test_score_capped_at_one(self):
        assert dynamic_price_score(100, _expectation(200, underserved=1.0), CFG) == pytest.approx(1.0)

    def test_floor_multiplier_bounded(self):
        sigmoid = math.tanh(0.8 * 2) * 0.5 + 0.5
        assert dynamic_price_score(40, _expectation(200), CFG) == pytest.approx(sigmoid * 0.5)

    def test_price_score_prefers_dynamic_branch(self):
        state = market(dynamic_pricing={Segment.BUDGET: _expectation(200)})
        p = product(Segment.BUDGET, price=200, quality=50)
        weight = get_segment_profile(Segment.BUDGET).weights.price
        assert price_score(p, Segment.BUDGET, state, CFG) == pytest.approx(0.5 * weight)

    def test_zero_expected_price_falls_back_to_static(self):
        state = market(dynamic_pricing={Segment.BUDGET: _expectation(0)})
        p = product(Segment.BUDGET, price=200, quality=50)
        weight = get_segment_profile(Segment.BUDGET).weights.price
        expected = (330 - 200) / 230 * weight
        assert price_score(p, Segment.BUDGET, state, CFG) == pytest.approx(expected)


class TestAxisScores:

    def test_diminishing_multiplier(self):
        assert diminishing_multiplier(0.5, CFG) == 0.5
        assert diminishing_multiplier(1.0, CFG) == 1.0
        assert diminishing_multiplier(1.04, CFG) == pytest.approx(1.1)
        assert diminishing_multiplier(3.0, CFG) == pytest.approx(1.2)

    def test_quality_at_expectation(self):
        p = product(Segment.GENERAL, quality=65)
        assert quality_score(p, Segment.GENERAL, CFG) == pytest.approx(28.0)

    def test_quality_capped(self):
        p = product(Segment.GENERAL, quality=130)
        assert quality_score(p, Segment.GENERAL, CFG) == pytest.approx(28.0 * 1.2)

    def test_quality_linear_below_expectation(self):
        p = product(Segment.GENERAL, quality=32.5)
        assert quality_score(p, Segment.GENERAL, CFG) == pytest.approx(14.0)

    def test_brand_high_critical_mass(self):
        assert brand_score(0.64, Segment.GENERAL, CFG) == pytest.approx(0.8 * 10 * 1.1)

    def test_brand_low_critical_mass(self):
        assert brand_score(0.25, Segment.GENERAL, CFG) == pytest.approx(0.5 * 10 * 0.9)

    def test_brand_neutral_band(self):
        assert brand_score(0.4, Segment.GENERAL, CFG) == pytest.approx(math.sqrt(0.4) * 10)

    def test_esg_uses_sustainability_premium(self):
        state = market()
        premium = state.market_pressures.sustainability_premium
        assert esg_score(500, Segment.GENERAL, state, CFG) == pytest.approx(0.5 * premium * 10)

    def test_feature_match_full_capability(self):
        prefs = get_segment_profile(Segment.ENTHUSIAST).feature_preferences
        assert feature_match(FeatureSet(100, 100, 100, 100, 100, 100), prefs) == pytest.approx(1.0)

    def test_feature_match_weighted(self):
        prefs = get_segment_profile(Segment.BUDGET).feature_preferences
        only_battery = FeatureSet(battery=100)
        assert feature_match(only_battery, prefs) == pytest.approx(prefs.battery)

    def test_feature_score_legacy_scalar(self):
        p = product(Segment.GENERAL, features=50)
        assert feature_score(p, Segment.GENERAL, CFG) == pytest.approx(0.5 * 20)

    def test_feature_score_prefers_feature_set(self):
        p = product(Segment.GENERAL, features=0, feature_set=FeatureSet(100, 100, 100, 100, 100, 100))
        assert feature_score(p, Segment.GENERAL, CFG) == pytest.approx(20.0)


class TestFlexibility:

    def _state(self, rd=3_000_000, brand=0.5, efficiency=0.8, qualities=(60, 70)):
        products = [
            product(s, quality=q, product_id=f"p{i}")
            for i, (s, q) in enumerate(zip(Segment, qualities))
        ]
        return team(
            "t", products=products, brand=brand, rd_budget=rd,
            factories=[Factory(factory_id="f", efficiency=efficiency)],
        ).state

    def test_all_four_criteria(self):
        state = self._state()
        assert flexibility_criteria_met(state, CFG) == 4
        assert flexibility_bonus_rate(state, CFG) == CFG.flexibility_bonus_full

    def test_three_criteria(self):
        state = self._state(rd=0)
        assert flexibility_criteria_met(state, CFG) == 3
        assert flexibility_bonus_rate(state, CFG) == CFG.flexibility_bonus_partial

    def test_two_criteria(self):
        state = self._state(rd=0, brand=0.1)
        assert flexibility_bonus_rate(state, CFG) == 0.0

    def test_no_factory_fails_efficiency(self):
        state = dataclasses.replace(self._state(), factories=())
        assert flexibility_criteria_met(state, CFG) == 3

    def test_low_quality_products_do_not_count(self):
        state = self._state(qualities=(60, 40))
        assert flexibility_criteria_met(state, CFG) == 3


class TestTeamPosition:

    def test_missing_product_scores_zero(self):
        entry = team("t", products=[product(Segment.BUDGET)])
        pos = calculate_team_position("t", entry.state, Segment.PROFESSIONAL, market(), CFG)
        assert pos.product is None
        assert pos.total_score == 0.0
        assert pos.price_score == pos.quality_score == pos.brand_score == 0.0
        assert pos.market_share == 0.0 and pos.units_sold == 0

    def test_total_is_components_plus_bonuses(self):
        entry = team("t", products=[product(Segment.GENERAL, price=450, quality=70)], brand=0.5, esg=400)
        pos = calculate_team_position("t", entry.state, Segment.GENERAL, market(), CFG)
        base = pos.price_score + pos.quality_score + pos.brand_score + pos.esg_score + pos.feature_score
        rate = flexibility_bonus_rate(entry.state, CFG)
        assert pos.total_score == pytest.approx((base + 70 * 0.001) * (1 + rate))

    def test_uses_first_product_for_segment(self):
        first = product(Segment.BUDGET, price=150, status=DevelopmentStatus.IN_DEVELOPMENT, product_id="a")
        second = product(Segment.BUDGET, price=250, product_id="b")
        entry = team("t", products=[first, second])
        pos = calculate_team_position("t", entry.state, Segment.BUDGET, market(), CFG)
        assert pos.product.product_id == "a"
        assert pos.price == 150

    def test_higher_quality_scores_higher(self):
        low = team("a", products=[product(Segment.ENTHUSIAST, price=800, quality=60)])
        high = team("b", products=[product(Segment.ENTHUSIAST, price=800, quality=85)])
        state = market()
        a = calculate_team_position("a", low.state, Segment.ENTHUSIAST, state, CFG)
        b = calculate_team_position("b", high.state, Segment.ENTHUSIAST, state, CFG)
        assert b.total_score > a.total_score
