"""Competitive-dynamics state: the only memory the engine carries across rounds.

Design:
  - Bonuses are immutable values; every change produces a new value.
  - ``CompetitionState`` is passed into ``simulate_market`` and a new,
    fully-updated state comes back in the result. Nothing is shared.
  - First-mover bonuses count down one round per simulation call, the same
    way timed status effects tick down, and are pruned at zero.
  - Arms-race bonuses are one-time: once ``bonus_used`` is set it stays set.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from market_engine.core.enums import EventImpact, MarketEventType, Segment, TechFamily


@dataclass(frozen=True, slots=True)
class FirstMoverBonus:
    """Temporary score multiplier for an early entrant into a thin segment."""

    team_id: str
    segment: Segment
    round_entered: int
    initial_bonus: float        # up to first_mover_max_bonus
    rounds_remaining: int

    @property
    def expired(self) -> bool:
        return self.rounds_remaining <= 0

    def decayed(self) -> FirstMoverBonus:
        return replace(self, rounds_remaining=self.rounds_remaining - 1)

    def multiplier(self, decay_rounds: int) -> float:
        """Linear decay: full bonus at ``decay_rounds`` remaining, none at 0."""
        return 1.0 + self.initial_bonus * (self.rounds_remaining / decay_rounds)


@dataclass(frozen=True, slots=True)
class ArmsRaceBonus:
    """One-time bonus for the first team to field a newly completed technology."""

    team_id: str
    tech_id: str
    family: TechFamily
    round_completed: int
    bonus_used: bool = False

    def consumed(self) -> ArmsRaceBonus:
        return replace(self, bonus_used=True)


@dataclass(frozen=True, slots=True)
class CompetitionState:
    """Cross-round competitive memory."""

    first_mover_bonuses: tuple[FirstMoverBonus, ...] = ()
    arms_race_bonuses: tuple[ArmsRaceBonus, ...] = ()
    first_completions: dict[str, str] = field(default_factory=dict)  # tech_id -> team_id

    def active_first_mover(self, team_id: str, segment: Segment) -> FirstMoverBonus | None:
        for bonus in self.first_mover_bonuses:
            if bonus.team_id == team_id and bonus.segment == segment and not bonus.expired:
                return bonus
        return None

    def segment_has_first_mover(self, segment: Segment) -> bool:
        return any(b.segment == segment and not b.expired for b in self.first_mover_bonuses)

    def decay_first_movers(self) -> CompetitionState:
        """Tick every first-mover bonus down one round and drop the expired ones."""
        remaining = tuple(
            d for d in (b.decayed() for b in self.first_mover_bonuses) if not d.expired
        )
        return replace(self, first_mover_bonuses=remaining)


def register_tech_completion(
    state: CompetitionState,
    team_id: str,
    tech_id: str,
    family: TechFamily,
    round_number: int,
) -> CompetitionState:
    """Record a completed technology; the first completer earns an arms-race bonus.

    Later completions of the same technology by other teams change nothing.
    """
    if tech_id in state.first_completions:
        return state
    completions = dict(state.first_completions)
    completions[tech_id] = team_id
    bonus = ArmsRaceBonus(team_id=team_id, tech_id=tech_id, family=family, round_completed=round_number)
    return replace(
        state,
        arms_race_bonuses=state.arms_race_bonuses + (bonus,),
        first_completions=completions,
    )


# ---------------------------------------------------------------------------
# Per-round reports
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CrowdingState:
    segment: Segment
    product_count: int
    crowding_factor: float      # 1.0 = no penalty


@dataclass(frozen=True, slots=True)
class BrandErosion:
    """Accelerated brand-decay trigger. Applied by the brand module, not here."""

    team_id: str
    segment: Segment
    competitor_team_id: str
    score_advantage: float
    erosion_multiplier: float
    message: str


@dataclass(frozen=True, slots=True)
class MarketEvent:
    """One entry in the competitive-intelligence feed."""

    event_type: MarketEventType
    round_number: int
    description: str
    impact: EventImpact = EventImpact.NEUTRAL
    team_id: str | None = None
    segment: Segment | None = None
