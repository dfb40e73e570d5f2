"""Replay recording: per-round seeds, fingerprints and outcomes as JSON.

Two runs of the same match produce byte-identical replay files, so a
diff of two replays pinpoints the first round that diverged.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from market_engine.core.enums import SUBSYSTEM_KEYS
from market_engine.systems.context import ENGINE_VERSION, SCHEMA_VERSION, hash_state

if TYPE_CHECKING:
    from market_engine.core.models import MarketState
    from market_engine.core.results import MarketSimulationResult
    from market_engine.systems.context import EngineContext

logger = logging.getLogger(__name__)


class ReplayRecorder:
    """Accumulates round records and flushes them to a JSON replay file."""

    __slots__ = ("_path", "_match_seed", "_rounds")

    def __init__(self, path: str | Path, match_seed: str) -> None:
        self._path = Path(path)
        self._match_seed = match_seed
        self._rounds: list[dict[str, Any]] = []

    @property
    def rounds(self) -> list[dict[str, Any]]:
        return list(self._rounds)

    def record_round(
        self,
        ctx: EngineContext,
        market_state: MarketState,
        result: MarketSimulationResult,
    ) -> None:
        seeds = {SUBSYSTEM_KEYS[s]: seed for s, seed in ctx.seeds.seeds.items()}
        shares = {
            team: {s.label: round(v, 6) for s, v in by_segment.items()}
            for team, by_segment in result.market_shares.items()
        }
        self._rounds.append(
            {
                "round": result.round_number,
                "seeds": seeds,
                "market_state_hash": hash_state(market_state),
                "result_hash": hash_state(result),
                "competition_hash": hash_state(result.competition.updated_state),
                "total_demand": {s.label: d for s, d in result.total_demand.items()},
                "shares": shares,
                "revenue": {team: round(v, 2) for team, v in result.revenue_by_team.items()},
                "rubber_banding": result.rubber_banding_applied,
                "events": [e.description for e in result.competition.market_events],
            }
        )

    def flush(self) -> None:
        """Write accumulated data to disk."""
        replay = {
            "engine_version": ENGINE_VERSION,
            "schema_version": SCHEMA_VERSION,
            "match_seed": self._match_seed,
            "total_rounds": len(self._rounds),
            "rounds": self._rounds,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(replay, indent=2), encoding="utf-8")
        logger.info("Replay saved to %s (%d rounds)", self._path, len(self._rounds))
