"""Tests for the pydantic persistence models.

Covers:
- Competition state round trip through JSON
- Dynamic pricing dump/load and validation errors
- Round summary built from a real result
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from pydantic import ValidationError

from market_engine.config import DEFAULT_CONFIG
from market_engine.core.competition import CompetitionState, FirstMoverBonus, register_tech_completion
from market_engine.core.enums import Segment, TechFamily
from market_engine.engine.pricing import update_dynamic_pricing
from market_engine.schemas import (
    ArmsRaceBonusSchema,
    CompetitionStateSchema,
    FirstMoverBonusSchema,
    MarketResultSummary,
    dump_dynamic_pricing,
    load_dynamic_pricing,
)
from tests.helpers.market_arena import MarketArena, market, product, team


def _competition():
    state = register_tech_completion(CompetitionState(), "a", "tech-7", TechFamily.CONNECTIVITY, 2)
    bonus = FirstMoverBonus(
        team_id="b", segment=Segment.ACTIVE_LIFESTYLE, round_entered=2, initial_bonus=0.15, rounds_remaining=2,
    )
    return CompetitionState(
        first_mover_bonuses=(bonus,),
        arms_race_bonuses=state.arms_race_bonuses,
        first_completions=state.first_completions,
    )


class TestCompetitionState:

    def test_json_round_trip(self):
        state = _competition()
        payload = CompetitionStateSchema.from_state(state).model_dump_json()
        restored = CompetitionStateSchema.model_validate_json(payload).to_state()
        assert restored == state

    def test_wire_format(self):
        data = CompetitionStateSchema.from_state(_competition()).model_dump()
        assert data["first_mover_bonuses"][0]["segment"] == "Active Lifestyle"
        assert data["arms_race_bonuses"][0]["family"] == "connectivity"
        assert data["first_completions"] == {"tech-7": "a"}

    def test_empty_state(self):
        assert CompetitionStateSchema().to_state() == CompetitionState()

    def test_unknown_segment_rejected(self):
        with pytest.raises(ValidationError):
            FirstMoverBonusSchema(
                team_id="a", segment="Luxury", round_entered=1, initial_bonus=0.1, rounds_remaining=3,
            )

    def test_unknown_family_rejected(self):
        with pytest.raises(ValidationError):
            ArmsRaceBonusSchema(team_id="a", tech_id="t", family="teleport", round_completed=1)


class TestDynamicPricing:

    def test_dump_and_load(self):
        teams = [team("a", products=[product(Segment.BUDGET, price=150)]), team("b")]
        pricing = update_dynamic_pricing(market(), teams, DEFAULT_CONFIG)
        rows = dump_dynamic_pricing(pricing)
        assert [r["segment"] for r in rows] == [s.label for s in Segment]
        assert load_dynamic_pricing(rows) == pricing

    def test_out_of_range_factor_rejected(self):
        row = {
            "segment": "Budget", "expected_price": 200.0, "underserved_factor": 1.5,
            "competitor_count": 0, "price_floor": 85.0, "price_ceiling": 360.0,
        }
        with pytest.raises(ValidationError):
            load_dynamic_pricing([row])


class TestSummary:

    def test_from_result(self):
        arena = MarketArena(seed="summary")
        arena.add_team("a", products=[product(Segment.BUDGET)], esg=100)
        arena.add_team("b", products=[product(Segment.BUDGET, price=260)])
        result = arena.run_round()

        summary = MarketResultSummary.from_result(result)
        assert summary.round_number == 1
        assert set(summary.total_demand) == {s.label for s in Segment}
        assert summary.market_shares["a"]["Budget"] == pytest.approx(result.market_shares["a"][Segment.BUDGET])
        assert summary.units_sold["b"]["Budget"] == result.sales_by_team["b"][Segment.BUDGET]
        assert summary.esg_penalties["a"] < 0
        assert "b" not in summary.esg_penalties

    def test_serialises(self):
        arena = MarketArena(seed="summary")
        arena.add_team("a", products=[product(Segment.GENERAL, price=450)])
        summary = MarketResultSummary.from_result(arena.run_round())
        restored = MarketResultSummary.model_validate_json(summary.model_dump_json())
        assert restored == summary
