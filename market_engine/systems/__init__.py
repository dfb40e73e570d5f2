"""Engine systems: seeded RNG, seed derivation, engine context."""

from market_engine.systems.context import (
    EngineContext,
    create_engine_context,
    create_insecure_context,
    create_test_context,
    derive_seed_bundle,
    hash_state,
)
from market_engine.systems.rng import EmptyChoiceError, SeededRNG, hash_string

__all__ = [
    "EmptyChoiceError",
    "EngineContext",
    "SeededRNG",
    "create_engine_context",
    "create_insecure_context",
    "create_test_context",
    "derive_seed_bundle",
    "hash_state",
    "hash_string",
]
