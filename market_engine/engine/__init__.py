"""Market engine: scoring, allocation, competitive dynamics, market evolution."""

from market_engine.engine.allocation import calculate_demand, calculate_market_shares
from market_engine.engine.dynamics import crowding_factor
from market_engine.engine.esg import assess_esg_risk
from market_engine.engine.evolution import apply_market_event, calculate_rankings, generate_next_market_state
from market_engine.engine.market_simulator import simulate_market
from market_engine.engine.pricing import update_dynamic_pricing
from market_engine.engine.scoring import calculate_team_position

__all__ = [
    "apply_market_event",
    "assess_esg_risk",
    "calculate_demand",
    "calculate_market_shares",
    "calculate_rankings",
    "calculate_team_position",
    "crowding_factor",
    "generate_next_market_state",
    "simulate_market",
    "update_dynamic_pricing",
]
