"""Pydantic models for the persistence boundary.

The orchestrator stores competitive state and price expectations between
rounds as JSON. These models convert engine values to and from plain
dicts; segments travel as their display labels and tech families as
lower-case names.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from market_engine.core.competition import ArmsRaceBonus, CompetitionState, FirstMoverBonus
from market_engine.core.enums import SEGMENT_LABELS, Segment, TechFamily
from market_engine.core.models import DynamicPriceExpectation
from market_engine.core.results import MarketSimulationResult


# --- Competition state ---

class FirstMoverBonusSchema(BaseModel):
    team_id: str
    segment: str
    round_entered: int
    initial_bonus: float
    rounds_remaining: int

    @field_validator("segment")
    @classmethod
    def known_segment(cls, value: str) -> str:
        if value not in SEGMENT_LABELS.values():
            raise ValueError(f"unknown segment {value!r}")
        return value

    @classmethod
    def from_bonus(cls, bonus: FirstMoverBonus) -> FirstMoverBonusSchema:
        return cls(
            team_id=bonus.team_id,
            segment=bonus.segment.label,
            round_entered=bonus.round_entered,
            initial_bonus=bonus.initial_bonus,
            rounds_remaining=bonus.rounds_remaining,
        )

    def to_bonus(self) -> FirstMoverBonus:
        return FirstMoverBonus(
            team_id=self.team_id,
            segment=Segment.from_label(self.segment),
            round_entered=self.round_entered,
            initial_bonus=self.initial_bonus,
            rounds_remaining=self.rounds_remaining,
        )


class ArmsRaceBonusSchema(BaseModel):
    team_id: str
    tech_id: str
    family: str
    round_completed: int
    bonus_used: bool = False

    @field_validator("family")
    @classmethod
    def known_family(cls, value: str) -> str:
        if value.upper() not in TechFamily.__members__:
            raise ValueError(f"unknown tech family {value!r}")
        return value

    @classmethod
    def from_bonus(cls, bonus: ArmsRaceBonus) -> ArmsRaceBonusSchema:
        return cls(
            team_id=bonus.team_id,
            tech_id=bonus.tech_id,
            family=bonus.family.name.lower(),
            round_completed=bonus.round_completed,
            bonus_used=bonus.bonus_used,
        )

    def to_bonus(self) -> ArmsRaceBonus:
        return ArmsRaceBonus(
            team_id=self.team_id,
            tech_id=self.tech_id,
            family=TechFamily[self.family.upper()],
            round_completed=self.round_completed,
            bonus_used=self.bonus_used,
        )


class CompetitionStateSchema(BaseModel):
    first_mover_bonuses: list[FirstMoverBonusSchema] = Field(default_factory=list)
    arms_race_bonuses: list[ArmsRaceBonusSchema] = Field(default_factory=list)
    first_completions: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_state(cls, state: CompetitionState) -> CompetitionStateSchema:
        return cls(
            first_mover_bonuses=[FirstMoverBonusSchema.from_bonus(b) for b in state.first_mover_bonuses],
            arms_race_bonuses=[ArmsRaceBonusSchema.from_bonus(b) for b in state.arms_race_bonuses],
            first_completions=dict(state.first_completions),
        )

    def to_state(self) -> CompetitionState:
        return CompetitionState(
            first_mover_bonuses=tuple(b.to_bonus() for b in self.first_mover_bonuses),
            arms_race_bonuses=tuple(b.to_bonus() for b in self.arms_race_bonuses),
            first_completions=dict(self.first_completions),
        )


# --- Dynamic pricing ---

class DynamicPriceSchema(BaseModel):
    segment: str
    expected_price: float
    underserved_factor: float = Field(ge=0.0, le=1.0)
    competitor_count: int = Field(ge=0)
    price_floor: float
    price_ceiling: float

    @field_validator("segment")
    @classmethod
    def known_segment(cls, value: str) -> str:
        if value not in SEGMENT_LABELS.values():
            raise ValueError(f"unknown segment {value!r}")
        return value

    def to_expectation(self) -> DynamicPriceExpectation:
        return DynamicPriceExpectation(
            expected_price=self.expected_price,
            underserved_factor=self.underserved_factor,
            competitor_count=self.competitor_count,
            price_floor=self.price_floor,
            price_ceiling=self.price_ceiling,
        )


_price_list = TypeAdapter(list[DynamicPriceSchema])


def dump_dynamic_pricing(pricing: dict[Segment, DynamicPriceExpectation]) -> list[dict]:
    """Segment-ordered JSON-ready list of price expectations."""
    rows = [
        DynamicPriceSchema(
            segment=SEGMENT_LABELS[segment],
            expected_price=exp.expected_price,
            underserved_factor=exp.underserved_factor,
            competitor_count=exp.competitor_count,
            price_floor=exp.price_floor,
            price_ceiling=exp.price_ceiling,
        )
        for segment, exp in sorted(pricing.items())
    ]
    return _price_list.dump_python(rows)


def load_dynamic_pricing(data: list[dict]) -> dict[Segment, DynamicPriceExpectation]:
    rows = _price_list.validate_python(data)
    return {Segment.from_label(r.segment): r.to_expectation() for r in rows}


# --- Round summary ---

class MarketResultSummary(BaseModel):
    """Compact per-round record for dashboards and audit logs."""

    round_number: int
    total_demand: dict[str, int]
    market_shares: dict[str, dict[str, float]]
    units_sold: dict[str, dict[str, int]]
    revenue_by_team: dict[str, float]
    rubber_banding_applied: bool = False
    esg_penalties: dict[str, float] = Field(default_factory=dict)
    events: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: MarketSimulationResult) -> MarketResultSummary:
        return cls(
            round_number=result.round_number,
            total_demand={s.label: d for s, d in result.total_demand.items()},
            market_shares={
                team: {s.label: v for s, v in shares.items()}
                for team, shares in result.market_shares.items()
            },
            units_sold={
                team: {s.label: v for s, v in units.items()}
                for team, units in result.sales_by_team.items()
            },
            revenue_by_team=dict(result.revenue_by_team),
            rubber_banding_applied=result.rubber_banding_applied,
            esg_penalties={team: e.amount for team, e in result.esg_events.items()},
            events=[e.description for e in result.competition.market_events],
        )
