"""Deterministic market-allocation engine for round-based business simulations."""

from market_engine.config import DEFAULT_CONFIG, MarketConfig
from market_engine.engine.market_simulator import simulate_market
from market_engine.systems.context import EngineContext, create_engine_context

__all__ = [
    "DEFAULT_CONFIG",
    "EngineContext",
    "MarketConfig",
    "create_engine_context",
    "simulate_market",
]
