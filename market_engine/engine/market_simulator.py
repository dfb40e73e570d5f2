"""Market simulator: one round of scoring, allocation and competitive dynamics.

Round phases, in order:
  1. Decay first-mover bonuses carried in from the previous round.
  2. Draw segment demand from the market stream.
  3. Per segment: score every team, apply crowding / first-mover / arms
     race modifiers, detect new first movers, softmax the scores, detect
     brand erosion.
  4. Rubber banding on the share table (round 3+, when enabled).
  5. Settle units, revenue, warranty cost and region revenue from the
     final shares, then apply ESG risk to team revenue.

Nothing escapes before the end: the result and the updated competition
state are assembled once and returned frozen.
"""

from __future__ import annotations

import dataclasses
import logging
from types import MappingProxyType
from typing import Sequence

from market_engine.config import DEFAULT_CONFIG, MarketConfig
from market_engine.core.competition import (
    ArmsRaceBonus,
    BrandErosion,
    CompetitionState,
    CrowdingState,
    FirstMoverBonus,
    MarketEvent,
)
from market_engine.core.enums import Region, Segment
from market_engine.core.models import MarketState, TeamEntry
from market_engine.core.results import (
    CompetitionReport,
    EsgEvent,
    MarketSimulationResult,
    TeamMarketPosition,
    freeze_table,
)
from market_engine.engine import dynamics
from market_engine.engine.allocation import (
    allocate_units,
    calculate_demand,
    calculate_market_shares,
    corrected_share,
    rubber_band_multipliers,
)
from market_engine.engine.esg import assess_esg_risk
from market_engine.engine.scoring import calculate_team_position
from market_engine.systems.context import EngineContext

logger = logging.getLogger(__name__)


def simulate_market(
    teams: Sequence[TeamEntry],
    market_state: MarketState,
    ctx: EngineContext,
    *,
    competition_state: CompetitionState | None = None,
    apply_rubber_banding: bool = False,
    config: MarketConfig = DEFAULT_CONFIG,
) -> MarketSimulationResult:
    """Run one market round for *teams* and return the complete result.

    Teams are processed in the given order and segments in enum order. The
    context supplies the only randomness (the market stream, one draw per
    segment).
    """
    team_ids = [t.team_id for t in teams]
    if len(set(team_ids)) != len(team_ids):
        raise ValueError(f"Duplicate team ids in market round: {team_ids}")

    round_number = market_state.round_number
    state = (competition_state or CompetitionState()).decay_first_movers()
    first_movers: list[FirstMoverBonus] = list(state.first_mover_bonuses)
    arms_race: list[ArmsRaceBonus] = list(state.arms_race_bonuses)

    total_demand = calculate_demand(market_state, ctx, config)

    scored: list[TeamMarketPosition] = []
    shares: dict[str, dict[Segment, float]] = {tid: {s: 0.0 for s in Segment} for tid in team_ids}
    crowding_states: list[CrowdingState] = []
    new_first_movers: list[FirstMoverBonus] = []
    erosions: list[BrandErosion] = []
    consumed_arms: list[ArmsRaceBonus] = []
    events: list[MarketEvent] = []

    for segment in Segment:
        crowding = dynamics.assess_crowding(teams, segment, config)
        crowding_states.append(crowding)

        segment_positions: list[TeamMarketPosition] = []
        for team in teams:
            position = calculate_team_position(team.team_id, team.state, segment, market_state, config)
            score = dynamics.apply_crowding(position.total_score, crowding)
            score = dynamics.apply_first_mover(score, team.team_id, segment, state, config)
            score, consumed = dynamics.apply_arms_race(score, team.team_id, position.product, arms_race, config)
            for bonus in consumed:
                consumed_arms.append(bonus)
                events.append(dynamics.arms_race_event(bonus, segment, round_number))
            segment_positions.append(dataclasses.replace(position, total_score=score))

        granted = dynamics.detect_first_mover(segment, segment_positions, crowding, state, round_number, config)
        if granted is not None:
            new_first_movers.append(granted)
            first_movers.append(granted)
            events.append(dynamics.first_mover_event(granted))

        if crowding.crowding_factor < 1.0:
            events.append(dynamics.crowding_event(crowding, round_number))

        segment_shares = calculate_market_shares(
            [p.total_score for p in segment_positions], config.softmax_temperature,
        )
        for position, share in zip(segment_positions, segment_shares):
            shares[position.team_id][segment] = share
        scored.extend(segment_positions)

        segment_erosions = dynamics.detect_brand_erosion(segment, segment_positions, config)
        erosions.extend(segment_erosions)
        events.extend(dynamics.brand_erosion_event(e, round_number) for e in segment_erosions)

        logger.debug(
            "%s: demand %d, %d launched (crowding %.2f), shares %s",
            segment.label, total_demand[segment], crowding.product_count, crowding.crowding_factor,
            {p.team_id: round(s, 4) for p, s in zip(segment_positions, segment_shares)},
        )

    rubber_banding_applied = False
    if apply_rubber_banding:
        multipliers = rubber_band_multipliers(shares, round_number, config)
        if multipliers:
            rubber_banding_applied = True
            logger.info("Rubber banding applied in round %d: %s", round_number, multipliers)
            for team_id, multiplier in multipliers.items():
                shares[team_id] = {s: corrected_share(v, multiplier) for s, v in shares[team_id].items()}

    positions, sales, revenue, region_revenue = _settle(teams, scored, shares, total_demand, config)

    esg_events: dict[str, EsgEvent] = {}
    for team in teams:
        event = assess_esg_risk(team.state.esg_score, revenue[team.team_id], config)
        if event is not None:
            esg_events[team.team_id] = event
            revenue[team.team_id] += event.amount

    updated_state = dataclasses.replace(
        state,
        first_mover_bonuses=tuple(first_movers),
        arms_race_bonuses=tuple(arms_race),
    )
    report = CompetitionReport(
        crowding=tuple(crowding_states),
        first_mover_bonuses=tuple(new_first_movers),
        brand_erosion=tuple(erosions),
        arms_race_bonuses=tuple(consumed_arms),
        market_events=tuple(events),
        updated_state=updated_state,
    )

    logger.info(
        "Round %d market: %d teams, demand %d units, %d events%s",
        round_number, len(teams), sum(total_demand.values()), len(events),
        " (rubber banded)" if rubber_banding_applied else "",
    )

    return MarketSimulationResult(
        round_number=round_number,
        positions=tuple(positions),
        total_demand=MappingProxyType(total_demand),
        market_shares=freeze_table(shares),
        sales_by_team=freeze_table(sales),
        revenue_by_team=MappingProxyType(revenue),
        revenue_by_region=freeze_table(region_revenue),
        rubber_banding_applied=rubber_banding_applied,
        esg_events=MappingProxyType(esg_events),
        competition=report,
    )


def _settle(
    teams: Sequence[TeamEntry],
    scored: list[TeamMarketPosition],
    shares: dict[str, dict[Segment, float]],
    total_demand: dict[Segment, int],
    config: MarketConfig,
) -> tuple[
    list[TeamMarketPosition],
    dict[str, dict[Segment, int]],
    dict[str, float],
    dict[str, dict[Region, float]],
]:
    """Turn final shares into units, revenue, warranty cost and region revenue."""
    by_id = {t.team_id: t for t in teams}
    sales = {t.team_id: {s: 0 for s in Segment} for t in teams}
    revenue = {t.team_id: 0.0 for t in teams}
    region_revenue = {t.team_id: {r: 0.0 for r in Region} for t in teams}

    settled: list[TeamMarketPosition] = []
    for position in scored:
        share = shares[position.team_id][position.segment]
        units = allocate_units(total_demand[position.segment], share)
        product = position.product
        price = product.price if product is not None else 0.0
        position_revenue = units * price

        warranty = 0.0
        if product is not None and units > 0:
            factory = by_id[position.team_id].state.primary_factory
            if factory is not None:
                effective_defects = factory.defect_rate * (1.0 - factory.warranty_reduction)
                warranty = max(0.0, units * effective_defects * product.unit_cost)
                region = factory.region
            else:
                region = config.default_region
            region_revenue[position.team_id][region] += position_revenue

        sales[position.team_id][position.segment] = units
        revenue[position.team_id] += position_revenue
        settled.append(dataclasses.replace(
            position,
            market_share=share,
            units_sold=units,
            revenue=position_revenue,
            warranty_cost=warranty,
        ))
    return settled, sales, revenue, region_revenue
