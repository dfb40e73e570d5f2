"""Tests for deterministic match replay.

Every random step draws from per-round, per-subsystem streams derived from
the match seed, so two runs of the same match MUST record identical
fingerprints at every round. These tests run multi-round matches twice
and compare the replay records and files.
"""

import sys
import os
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from market_engine.core.enums import Segment
from market_engine.core.models import EconomicEvent
from market_engine.engine.evolution import generate_next_market_state
from market_engine.systems.context import ENGINE_VERSION, create_engine_context
from market_engine.utils.replay import ReplayRecorder
from tests.helpers.market_arena import MarketArena, product


def _arena(seed: str) -> MarketArena:
    arena = MarketArena(seed=seed, rubber_banding=True, evolve_market=True)
    arena.add_team("north", products=[
        product(Segment.BUDGET, price=160, quality=55, product_id="n1"),
        product(Segment.GENERAL, price=480, quality=68, product_id="n2"),
    ], brand=0.55, esg=650)
    arena.add_team("south", products=[product(Segment.BUDGET, price=210, quality=62)], esg=150)
    arena.add_team("east", products=[
        product(Segment.ENTHUSIAST, price=880, quality=84, product_id="e1"),
        product(Segment.PROFESSIONAL, price=1350, quality=88, product_id="e2"),
    ], brand=0.65, rd_budget=4_000_000)
    return arena


def _record_match(seed: str, rounds: int, path) -> ReplayRecorder:
    """Run *rounds* rounds, recording the context and market state of each."""
    arena = _arena(seed)
    recorder = ReplayRecorder(path, seed)
    for _ in range(rounds):
        ctx = create_engine_context(seed, arena.market_state.round_number)
        state = arena.market_state
        result = arena.run_round()
        recorder.record_round(ctx, state, result)
    return recorder


class TestReplayDeterminism:

    def test_same_seed_same_records(self, tmp_path):
        a = _record_match("replay-1", 6, tmp_path / "a.json")
        b = _record_match("replay-1", 6, tmp_path / "b.json")
        assert a.rounds == b.rounds

    def test_same_seed_identical_files(self, tmp_path):
        a = _record_match("replay-1", 4, tmp_path / "a.json")
        b = _record_match("replay-1", 4, tmp_path / "b.json")
        a.flush()
        b.flush()
        assert (tmp_path / "a.json").read_bytes() == (tmp_path / "b.json").read_bytes()

    def test_different_seed_diverges(self, tmp_path):
        a = _record_match("replay-1", 2, tmp_path / "a.json")
        b = _record_match("replay-2", 2, tmp_path / "b.json")
        assert a.rounds[0]["seeds"] != b.rounds[0]["seeds"]
        assert a.rounds[0]["result_hash"] != b.rounds[0]["result_hash"]

    def test_events_are_deterministic(self):
        event = EconomicEvent(kind="currency_crisis")
        states = []
        for _ in range(2):
            arena = _arena("replay-events")
            arena.run_round()
            ctx = create_engine_context("replay-events", 2)
            states.append(generate_next_market_state(arena.market_state, ctx, events=[event], teams=arena.teams))
        assert states[0] == states[1]


class TestReplayFile:

    def test_flush_layout(self, tmp_path):
        path = tmp_path / "nested" / "replay.json"
        recorder = _record_match("replay-file", 3, path)
        recorder.flush()

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["engine_version"] == ENGINE_VERSION
        assert data["match_seed"] == "replay-file"
        assert data["total_rounds"] == 3
        assert [r["round"] for r in data["rounds"]] == [1, 2, 3]

    def test_round_record(self, tmp_path):
        record = _record_match("replay-file", 1, tmp_path / "r.json").rounds[0]
        assert set(record["seeds"]) == {"round", "market", "factory", "hr", "marketing", "rd", "finance"}
        assert len(record["market_state_hash"]) == 16
        assert set(record["total_demand"]) == {s.label for s in Segment}
        assert set(record["shares"]) == {"north", "south", "east"}
        assert record["revenue"]["south"] > 0
        assert record["rubber_banding"] is False

    def test_rounds_is_a_copy(self, tmp_path):
        recorder = _record_match("replay-file", 1, tmp_path / "r.json")
        recorder.rounds.clear()
        assert len(recorder.rounds) == 1
