"""Immutable round results handed back to the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from market_engine.core.competition import (
    ArmsRaceBonus,
    BrandErosion,
    CompetitionState,
    CrowdingState,
    FirstMoverBonus,
    MarketEvent,
)
from market_engine.core.enums import Region, Segment
from market_engine.core.models import Product


@dataclass(frozen=True, slots=True)
class TeamMarketPosition:
    """One team's standing in one segment for one round."""

    team_id: str
    segment: Segment
    product: Product | None
    price_score: float = 0.0
    quality_score: float = 0.0
    brand_score: float = 0.0
    esg_score: float = 0.0
    feature_score: float = 0.0
    total_score: float = 0.0
    market_share: float = 0.0
    units_sold: int = 0
    revenue: float = 0.0
    warranty_cost: float = 0.0

    @property
    def price(self) -> float:
        return self.product.price if self.product is not None else 0.0


@dataclass(frozen=True, slots=True)
class EsgEvent:
    """Downside-only ESG revenue adjustment."""

    penalty_rate: float
    amount: float               # <= 0
    message: str


@dataclass(frozen=True, slots=True)
class CompetitionReport:
    crowding: tuple[CrowdingState, ...]
    first_mover_bonuses: tuple[FirstMoverBonus, ...]     # granted this round
    brand_erosion: tuple[BrandErosion, ...]
    arms_race_bonuses: tuple[ArmsRaceBonus, ...]         # consumed this round
    market_events: tuple[MarketEvent, ...]
    updated_state: CompetitionState


@dataclass(frozen=True, slots=True)
class MarketSimulationResult:
    """Read-only view of a completed round.

    Per-team tables are wrapped in ``MappingProxyType`` so no partial state
    can be written back by a consumer.
    """

    round_number: int
    positions: tuple[TeamMarketPosition, ...]
    total_demand: Mapping[Segment, int]
    market_shares: Mapping[str, Mapping[Segment, float]]
    sales_by_team: Mapping[str, Mapping[Segment, int]]
    revenue_by_team: Mapping[str, float]
    revenue_by_region: Mapping[str, Mapping[Region, float]]
    rubber_banding_applied: bool
    esg_events: Mapping[str, EsgEvent]
    competition: CompetitionReport

    def position(self, team_id: str, segment: Segment) -> TeamMarketPosition:
        for pos in self.positions:
            if pos.team_id == team_id and pos.segment == segment:
                return pos
        raise KeyError(f"No position for team {team_id!r} in {segment.label}")

    def segment_positions(self, segment: Segment) -> tuple[TeamMarketPosition, ...]:
        return tuple(p for p in self.positions if p.segment == segment)


def freeze_table(table: Mapping[str, Mapping]) -> Mapping[str, Mapping]:
    """Wrap a two-level table in read-only proxies."""
    return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in table.items()})


@dataclass(frozen=True, slots=True)
class TeamRanking:
    """1-based standings; ties keep input order."""

    team_id: str
    rank: int                   # by total revenue
    eps_rank: int
    share_rank: int             # by summed segment share
