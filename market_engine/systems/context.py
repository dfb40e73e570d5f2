"""Engine context: the single source of randomness for a round.

Every engine function that draws random numbers takes an ``EngineContext``
as a required argument. There is no module-level generator to fall back on;
code without a seed must build one explicitly with
``create_insecure_context`` so the loss of reproducibility is visible.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import xxhash

from market_engine.core.enums import SUBSYSTEM_KEYS, Subsystem
from market_engine.systems.rng import SeededRNG, hash_string

logger = logging.getLogger(__name__)

ENGINE_VERSION = "2.0.0"
SCHEMA_VERSION = "2.0.0"


@dataclass(frozen=True, slots=True)
class SeedBundle:
    """Per-subsystem seeds derived from one match seed and a round number."""

    match_seed: str
    round_number: int
    seeds: Mapping[Subsystem, int]

    def seed_for(self, subsystem: Subsystem) -> int:
        return self.seeds[subsystem]


def subsystem_seed(match_seed: str, subsystem: Subsystem, round_number: int) -> int:
    """Seed for one subsystem: ``hash_string(f"{match}-{key}-{round}")``."""
    return hash_string(f"{match_seed}-{SUBSYSTEM_KEYS[subsystem]}-{round_number}")


def derive_seed_bundle(match_seed: str, round_number: int) -> SeedBundle:
    seeds = {s: subsystem_seed(match_seed, s, round_number) for s in Subsystem}
    return SeedBundle(match_seed=match_seed, round_number=round_number, seeds=seeds)


@dataclass(frozen=True, slots=True)
class RNGProvider:
    """One isolated generator per subsystem."""

    streams: Mapping[Subsystem, SeededRNG]

    @classmethod
    def from_seeds(cls, seeds: SeedBundle) -> RNGProvider:
        return cls(streams={s: SeededRNG(seeds.seed_for(s)) for s in Subsystem})

    def stream(self, subsystem: Subsystem) -> SeededRNG:
        return self.streams[subsystem]

    @property
    def market(self) -> SeededRNG:
        return self.streams[Subsystem.MARKET]

    @property
    def general(self) -> SeededRNG:
        return self.streams[Subsystem.GENERAL]


class DeterministicIDGenerator:
    """Counter-based IDs: ``{kind}-{team}-r{round}-{n}``."""

    __slots__ = ("_round_number", "_team_id", "_counters")

    def __init__(self, round_number: int, team_id: str) -> None:
        self._round_number = round_number
        self._team_id = team_id
        self._counters: dict[str, int] = {}

    def next(self, kind: str) -> str:
        counter = self._counters.get(kind, 0) + 1
        self._counters[kind] = counter
        return f"{kind}-{self._team_id}-r{self._round_number}-{counter}"

    def reset(self) -> None:
        self._counters.clear()


@dataclass(frozen=True, slots=True)
class EngineVersion:
    engine_version: str = ENGINE_VERSION
    schema_version: str = SCHEMA_VERSION


@dataclass(frozen=True, slots=True)
class EngineContext:
    """Everything needed to run one round deterministically.

    Owned by the orchestrator and passed by reference into every subsystem.
    The fields cannot be rebound; only the generators advance.
    """

    seeds: SeedBundle
    rng: RNGProvider
    id_generator: DeterministicIDGenerator
    round_number: int
    team_id: str = "market"
    version: EngineVersion = EngineVersion()
    deterministic: bool = True


def create_engine_context(match_seed: str, round_number: int, team_id: str = "market") -> EngineContext:
    seeds = derive_seed_bundle(match_seed, round_number)
    return EngineContext(
        seeds=seeds,
        rng=RNGProvider.from_seeds(seeds),
        id_generator=DeterministicIDGenerator(round_number, team_id),
        round_number=round_number,
        team_id=team_id,
    )


def create_test_context(seed: int = 12345, round_number: int = 1, team_id: str = "test-team") -> EngineContext:
    return create_engine_context(str(seed), round_number, team_id)


def create_insecure_context(round_number: int, team_id: str = "market") -> EngineContext:
    """Context seeded from OS entropy. Runs built on it cannot be replayed."""
    match_seed = f"insecure-{secrets.token_hex(8)}"
    logger.warning(
        "Creating NON-DETERMINISTIC engine context (match seed %s); round %d will not be reproducible",
        match_seed, round_number,
    )
    ctx = create_engine_context(match_seed, round_number, team_id)
    return dataclasses.replace(ctx, deterministic=False)


# ---------------------------------------------------------------------------
# State fingerprinting (audit trail)
# ---------------------------------------------------------------------------

def _canonical(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _canonical(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {_key(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def _key(key: Any) -> str:
    return key.name if isinstance(key, Enum) else str(key)


def hash_state(state: Any) -> str:
    """Order-independent xxh64 hex digest of a state value."""
    payload = json.dumps(_canonical(state), sort_keys=True, separators=(",", ":"))
    return xxhash.xxh64(payload.encode("utf-8")).hexdigest()
