"""Round-to-round market evolution, economic events and team rankings.

Every random step draws from the context's market stream, in a fixed
order: gdp, inflation, confidence, unemployment, FX volatility, one draw
per FX pair (insertion order), price competition, then whatever the
applied events consume.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Sequence

from market_engine.config import DEFAULT_CONFIG, MarketConfig
from market_engine.core.enums import Segment
from market_engine.core.models import (
    EconomicConditions,
    EconomicEvent,
    EventEffect,
    InterestRates,
    MarketPressures,
    MarketState,
    TeamEntry,
)
from market_engine.core.results import MarketSimulationResult, TeamRanking
from market_engine.engine.pricing import update_dynamic_pricing

if TYPE_CHECKING:
    from market_engine.systems.context import EngineContext

logger = logging.getLogger(__name__)

FX_VOLATILITY_MIN = 0.15
FX_VOLATILITY_MAX = 0.25
CURRENCY_CRISIS_VOLATILITY = 0.35

DEMAND_TARGETS: dict[str, Segment] = {
    "demand_budget": Segment.BUDGET,
    "demand_general": Segment.GENERAL,
    "demand_enthusiast": Segment.ENTHUSIAST,
    "demand_professional": Segment.PROFESSIONAL,
    "demand_active": Segment.ACTIVE_LIFESTYLE,
}

NAMED_EVENTS = frozenset({
    "recession",
    "boom",
    "inflation_spike",
    "tech_breakthrough",
    "sustainability_regulation",
    "price_war",
    "supply_chain_crisis",
    "currency_crisis",
})


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class _Draft:
    """Mutable working copy of a MarketState, frozen again by ``build``."""

    __slots__ = (
        "gdp", "inflation", "confidence", "unemployment",
        "price_competition", "quality_expectations", "sustainability",
        "federal_rate", "ten_year", "corporate",
        "demand", "fx", "fx_volatility", "_source",
    )

    def __init__(self, state: MarketState) -> None:
        econ = state.economic_conditions
        pressures = state.market_pressures
        rates = state.interest_rates
        self.gdp = econ.gdp
        self.inflation = econ.inflation
        self.confidence = econ.consumer_confidence
        self.unemployment = econ.unemployment_rate
        self.price_competition = pressures.price_competition
        self.quality_expectations = pressures.quality_expectations
        self.sustainability = pressures.sustainability_premium
        self.federal_rate = rates.federal_rate
        self.ten_year = rates.ten_year_bond
        self.corporate = rates.corporate_bond
        self.demand = {s: d.total_demand for s, d in state.demand_by_segment.items()}
        self.fx = dict(state.fx_rates)
        self.fx_volatility = state.fx_volatility
        self._source = state

    def scale_demand(self, factor: float, segment: Segment | None = None) -> None:
        targets = [segment] if segment is not None else list(Segment)
        for s in targets:
            self.demand[s] *= factor

    def build(self, **overrides) -> MarketState:
        src = self._source
        return dataclasses.replace(
            src,
            demand_by_segment={
                s: dataclasses.replace(d, total_demand=self.demand[s])
                for s, d in src.demand_by_segment.items()
            },
            economic_conditions=EconomicConditions(
                gdp=self.gdp,
                inflation=self.inflation,
                consumer_confidence=self.confidence,
                unemployment_rate=self.unemployment,
            ),
            market_pressures=MarketPressures(
                price_competition=self.price_competition,
                quality_expectations=self.quality_expectations,
                sustainability_premium=self.sustainability,
            ),
            interest_rates=InterestRates(
                federal_rate=self.federal_rate,
                ten_year_bond=self.ten_year,
                corporate_bond=self.corporate,
            ),
            fx_rates=self.fx,
            fx_volatility=self.fx_volatility,
            **overrides,
        )


def generate_next_market_state(
    state: MarketState,
    ctx: EngineContext,
    events: Sequence[EconomicEvent] = (),
    teams: Sequence[TeamEntry] | None = None,
    config: MarketConfig = DEFAULT_CONFIG,
) -> MarketState:
    """Advance the market one round: random walk, growth, pressures, events.

    When *teams* is given, dynamic price expectations are refreshed from
    their launched products before events are applied.
    """
    rng = ctx.rng.market
    draft = _Draft(state)

    draft.gdp = _clamp(draft.gdp + (rng.next() - 0.5) * 1.0, -5, 10)
    draft.inflation = _clamp(draft.inflation + (rng.next() - 0.5) * 0.5, 0, 15)
    draft.confidence = _clamp(draft.confidence + (rng.next() - 0.5) * 5, 20, 100)
    draft.unemployment = _clamp(draft.unemployment + (rng.next() - 0.5) * 0.3, 2, 15)

    draft.fx_volatility = FX_VOLATILITY_MIN + rng.next() * (FX_VOLATILITY_MAX - FX_VOLATILITY_MIN)
    for pair in draft.fx:
        draft.fx[pair] *= 1 + (rng.next() - 0.5) * draft.fx_volatility

    # Rates follow inflation
    if draft.inflation > 3:
        draft.federal_rate += 0.25
    elif draft.inflation < 1.5:
        draft.federal_rate -= 0.25
    draft.federal_rate = _clamp(draft.federal_rate, 0, 10)
    draft.ten_year = draft.federal_rate - 0.5
    draft.corporate = draft.federal_rate + 1

    for segment, data in state.demand_by_segment.items():
        draft.demand[segment] *= 1 + data.growth_rate

    draft.price_competition = _clamp(draft.price_competition + (rng.next() - 0.5) * 0.1, 0.2, 0.9)
    draft.quality_expectations = _clamp(draft.quality_expectations + 0.02, 0.3, 0.95)
    draft.sustainability = _clamp(draft.sustainability + 0.01, 0.1, 0.6)

    next_state = draft.build(round_number=state.round_number + 1)
    if teams is not None:
        next_state = dataclasses.replace(
            next_state, dynamic_pricing=update_dynamic_pricing(next_state, teams, config),
        )

    for event in events:
        next_state = apply_market_event(next_state, event, ctx)

    logger.info(
        "Market advanced to round %d: gdp %.2f, inflation %.2f, confidence %.1f, %d events",
        next_state.round_number,
        next_state.economic_conditions.gdp,
        next_state.economic_conditions.inflation,
        next_state.economic_conditions.consumer_confidence,
        len(events),
    )
    return next_state


def apply_market_event(state: MarketState, event: EconomicEvent, ctx: EngineContext) -> MarketState:
    """Apply one economic event and clamp the result to its wide bounds."""
    draft = _Draft(state)

    match event.kind:
        case "recession":
            draft.gdp -= 2
            draft.confidence -= 15
            draft.unemployment += 1.5
            draft.scale_demand(0.85)
        case "boom":
            draft.gdp += 2
            draft.confidence += 10
            draft.unemployment -= 0.5
            draft.scale_demand(1.15)
        case "inflation_spike":
            draft.inflation += 3
            draft.federal_rate += 0.75
            draft.confidence -= 8
        case "tech_breakthrough":
            draft.scale_demand(1.25, Segment.ENTHUSIAST)
            draft.scale_demand(1.20, Segment.PROFESSIONAL)
            draft.quality_expectations += 0.05
        case "sustainability_regulation":
            draft.sustainability += 0.15
        case "price_war":
            draft.price_competition += 0.2
            draft.scale_demand(1.15, Segment.BUDGET)
        case "supply_chain_crisis":
            draft.scale_demand(0.9)
        case "currency_crisis":
            rng = ctx.rng.market
            draft.fx_volatility = CURRENCY_CRISIS_VOLATILITY
            for pair in draft.fx:
                draft.fx[pair] *= 0.85 + rng.next() * 0.3
        case _:
            for effect in event.effects:
                _apply_effect(draft, effect)

    draft.gdp = _clamp(draft.gdp, -10, 15)
    draft.inflation = _clamp(draft.inflation, 0, 20)
    draft.confidence = _clamp(draft.confidence, 10, 100)
    draft.unemployment = _clamp(draft.unemployment, 1, 20)
    draft.price_competition = _clamp(draft.price_competition, 0.1, 1)
    draft.quality_expectations = _clamp(draft.quality_expectations, 0.2, 1)
    draft.sustainability = _clamp(draft.sustainability, 0, 0.8)

    logger.debug("Applied market event %r in round %d", event.kind, state.round_number)
    return draft.build()


def _apply_effect(draft: _Draft, effect: EventEffect) -> None:
    match effect.target:
        case "gdp":
            draft.gdp += effect.modifier
        case "inflation":
            draft.inflation += effect.modifier
        case "consumerConfidence":
            draft.confidence += effect.modifier
        case "unemployment":
            draft.unemployment += effect.modifier
        case "priceCompetition":
            draft.price_competition *= 1 + effect.modifier
        case "sustainabilityPremium":
            draft.sustainability *= 1 + effect.modifier
        case target if target in DEMAND_TARGETS:
            draft.scale_demand(1 + effect.modifier, DEMAND_TARGETS[target])
        case _:
            raise ValueError(f"Unknown market event effect target: {effect.target!r}")


def calculate_rankings(teams: Sequence[TeamEntry], result: MarketSimulationResult) -> list[TeamRanking]:
    """Revenue, EPS and total-share standings for every team, in input order."""

    def ranks(key) -> dict[str, int]:
        ordered = sorted(teams, key=key, reverse=True)  # stable: ties keep input order
        return {t.team_id: i + 1 for i, t in enumerate(ordered)}

    by_revenue = ranks(lambda t: result.revenue_by_team.get(t.team_id, 0.0))
    by_eps = ranks(lambda t: t.state.eps)
    by_share = ranks(lambda t: sum(result.market_shares.get(t.team_id, {}).values()))

    return [
        TeamRanking(
            team_id=t.team_id,
            rank=by_revenue[t.team_id],
            eps_rank=by_eps[t.team_id],
            share_rank=by_share[t.team_id],
        )
        for t in teams
    ]
