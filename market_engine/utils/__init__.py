"""Logging setup and round replay recording."""

from market_engine.utils.logging import setup_logging
from market_engine.utils.replay import ReplayRecorder

__all__ = ["ReplayRecorder", "setup_logging"]
