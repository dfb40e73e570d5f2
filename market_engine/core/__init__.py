"""Core data models: segments, teams, market state, competition state, results."""

from market_engine.core.competition import CompetitionState, register_tech_completion
from market_engine.core.enums import DevelopmentStatus, Region, Segment, Subsystem, TechFamily
from market_engine.core.models import (
    Factory,
    FeatureSet,
    MarketState,
    Product,
    TeamEntry,
    TeamState,
    create_initial_market_state,
)
from market_engine.core.results import MarketSimulationResult, TeamMarketPosition

__all__ = [
    "CompetitionState",
    "DevelopmentStatus",
    "Factory",
    "FeatureSet",
    "MarketSimulationResult",
    "MarketState",
    "Product",
    "Region",
    "Segment",
    "Subsystem",
    "TeamEntry",
    "TeamMarketPosition",
    "TeamState",
    "TechFamily",
    "create_initial_market_state",
    "register_tech_completion",
]
