"""Competitive dynamics: crowding, first-mover, arms race, brand erosion.

Modifiers run per segment on each team's combined score before softmax,
in a fixed order: crowding, then first-mover, then arms race. They only
ever touch positive scores. Detection of new first movers and of brand
erosion runs on the modified scores.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from market_engine.core.competition import (
    ArmsRaceBonus,
    BrandErosion,
    CompetitionState,
    CrowdingState,
    FirstMoverBonus,
    MarketEvent,
)
from market_engine.core.enums import EventImpact, MarketEventType, Segment
from market_engine.core.models import Product, TeamEntry
from market_engine.core.results import TeamMarketPosition

if TYPE_CHECKING:
    from market_engine.config import MarketConfig

logger = logging.getLogger(__name__)


# -- crowding --

def crowding_factor(product_count: int, config: MarketConfig) -> float:
    """1.0 up to the threshold, then a linear penalty per extra product, floored at 0."""
    if product_count <= config.crowding_threshold:
        return 1.0
    extra = product_count - config.crowding_threshold
    return max(0.0, 1.0 - extra * config.crowding_penalty_per_product)


def launched_count(teams: Sequence[TeamEntry], segment: Segment) -> int:
    """Number of teams with a launched product in *segment*."""
    return sum(1 for t in teams if t.state.has_launched_in(segment))


def assess_crowding(teams: Sequence[TeamEntry], segment: Segment, config: MarketConfig) -> CrowdingState:
    count = launched_count(teams, segment)
    return CrowdingState(segment=segment, product_count=count, crowding_factor=crowding_factor(count, config))


# -- score modifiers --

def apply_crowding(score: float, crowding: CrowdingState) -> float:
    if score > 0 and crowding.crowding_factor < 1.0:
        return score * crowding.crowding_factor
    return score


def apply_first_mover(
    score: float,
    team_id: str,
    segment: Segment,
    state: CompetitionState,
    config: MarketConfig,
) -> float:
    if score <= 0:
        return score
    bonus = state.active_first_mover(team_id, segment)
    if bonus is None:
        return score
    return score * bonus.multiplier(config.first_mover_decay_rounds)


def apply_arms_race(
    score: float,
    team_id: str,
    product: Product | None,
    bonuses: list[ArmsRaceBonus],
    config: MarketConfig,
) -> tuple[float, list[ArmsRaceBonus]]:
    """Multiply *score* once per unconsumed bonus whose tech the product uses.

    *bonuses* is the round's working list; matched entries are replaced with
    their consumed copies. Returns the new score and the consumed bonuses.
    """
    if score <= 0 or product is None:
        return score, []
    consumed: list[ArmsRaceBonus] = []
    for i, bonus in enumerate(bonuses):
        if bonus.team_id != team_id or bonus.bonus_used:
            continue
        if bonus.tech_id in product.applied_techs:
            score *= 1.0 + config.arms_race_bonus
            bonuses[i] = bonus.consumed()
            consumed.append(bonuses[i])
    return score, consumed


# -- detection --

def detect_first_mover(
    segment: Segment,
    positions: Sequence[TeamMarketPosition],
    crowding: CrowdingState,
    state: CompetitionState,
    round_number: int,
    config: MarketConfig,
) -> FirstMoverBonus | None:
    """Grant a bonus to the best-scoring entrant of a thin segment.

    Only when at most one launched product exists and no team already holds
    an active bonus there. One existing competitor scales the bonus down.
    """
    if crowding.product_count > 1 or state.segment_has_first_mover(segment):
        return None
    candidates = [p for p in positions if p.product is not None and p.total_score > 0]
    if not candidates:
        return None
    # max keeps the earliest team on ties
    entrant = max(candidates, key=lambda p: p.total_score)
    magnitude = config.first_mover_max_bonus
    if crowding.product_count == 1:
        magnitude *= config.first_mover_single_competitor_factor
    return FirstMoverBonus(
        team_id=entrant.team_id,
        segment=segment,
        round_entered=round_number,
        initial_bonus=magnitude,
        rounds_remaining=config.first_mover_decay_rounds,
    )


def detect_brand_erosion(
    segment: Segment,
    positions: Sequence[TeamMarketPosition],
    config: MarketConfig,
) -> list[BrandErosion]:
    """Compare the segment leader against every trailing team with a positive score."""
    scored = sorted((p for p in positions if p.total_score > 0), key=lambda p: -p.total_score)
    if len(scored) < 2:
        return []
    leader = scored[0]
    erosions: list[BrandErosion] = []
    for trailing in scored[1:]:
        advantage = (leader.total_score - trailing.total_score) / trailing.total_score
        if advantage <= config.brand_erosion_threshold:
            continue
        multiplier = 1.0 + advantage * config.brand_erosion_sensitivity
        erosions.append(BrandErosion(
            team_id=trailing.team_id,
            segment=segment,
            competitor_team_id=leader.team_id,
            score_advantage=advantage,
            erosion_multiplier=multiplier,
            message=(
                f"{trailing.team_id}'s brand erodes in {segment.label} "
                f"(-{(multiplier - 1) * 100:.0f}% decay) due to {leader.team_id}'s stronger product"
            ),
        ))
    return erosions


# -- event feed --

def crowding_event(crowding: CrowdingState, round_number: int) -> MarketEvent:
    penalty = (1.0 - crowding.crowding_factor) * 100
    return MarketEvent(
        event_type=MarketEventType.SEGMENT_FLOODED,
        round_number=round_number,
        description=(
            f"{crowding.segment.label} segment is crowded "
            f"({crowding.product_count} products, {penalty:.0f}% penalty)"
        ),
        impact=EventImpact.NEGATIVE,
        segment=crowding.segment,
    )


def first_mover_event(bonus: FirstMoverBonus) -> MarketEvent:
    return MarketEvent(
        event_type=MarketEventType.SEGMENT_UNDERSERVED,
        round_number=bonus.round_entered,
        description=f"{bonus.team_id} gains first-mover advantage in {bonus.segment.label}",
        impact=EventImpact.POSITIVE,
        team_id=bonus.team_id,
        segment=bonus.segment,
    )


def arms_race_event(bonus: ArmsRaceBonus, segment: Segment, round_number: int) -> MarketEvent:
    return MarketEvent(
        event_type=MarketEventType.TECH_COMPLETED,
        round_number=round_number,
        description=f"{bonus.team_id} gains arms race bonus from {bonus.family.name.lower()} technology",
        impact=EventImpact.POSITIVE,
        team_id=bonus.team_id,
        segment=segment,
    )


def brand_erosion_event(erosion: BrandErosion, round_number: int) -> MarketEvent:
    return MarketEvent(
        event_type=MarketEventType.BRAND_EROSION,
        round_number=round_number,
        description=erosion.message,
        impact=EventImpact.NEGATIVE,
        team_id=erosion.team_id,
        segment=erosion.segment,
    )
