"""Entry point: ``python -m market_engine``.

Runs a seeded, headless multi-round market with generated teams:
  - ``python -m market_engine run --seed match-1 --rounds 8``
  - ``python -m market_engine seeds --seed match-1 --round 3``
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger("market_engine.runner")


def _build_parser() -> argparse.ArgumentParser:
    from market_engine.engine.evolution import NAMED_EVENTS

    parser = argparse.ArgumentParser(description="Deterministic Market Allocation Engine")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run a headless multi-round market simulation (default)")
    run.add_argument("--seed", type=str, default="match-1")
    run.add_argument("--rounds", type=int, default=8)
    run.add_argument("--teams", type=int, default=4)
    run.add_argument("--temperature", type=float, default=None)
    run.add_argument("--rubber-banding", action="store_true")
    run.add_argument(
        "--event", action="append", default=[], metavar="ROUND:KIND",
        help=f"Schedule a market event, kinds: {', '.join(sorted(NAMED_EVENTS))}",
    )
    run.add_argument("--replay", type=str, default="replay.json")
    run.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    seeds = sub.add_parser("seeds", help="Print the derived subsystem seeds for one round")
    seeds.add_argument("--seed", type=str, default="match-1")
    seeds.add_argument("--round", type=int, default=1)

    return parser


def _parse_events(specs: list[str]) -> dict[int, list]:
    from market_engine.core.models import EconomicEvent

    schedule: dict[int, list] = {}
    for spec in specs:
        round_part, sep, kind = spec.partition(":")
        if not sep or not round_part.isdigit():
            raise SystemExit(f"Invalid --event {spec!r}, expected ROUND:KIND")
        schedule.setdefault(int(round_part), []).append(EconomicEvent(kind=kind))
    return schedule


def _build_teams(match_seed: str, count: int) -> list:
    """Deterministic demo teams: one to three products each, varied strategies."""
    from market_engine.core.enums import Region, Segment, Subsystem
    from market_engine.core.models import (
        Factory,
        FeatureSet,
        Product,
        TeamEntry,
        TeamState,
        create_initial_market_state,
    )
    from market_engine.systems.context import create_engine_context

    rng = create_engine_context(match_seed, 0).rng.stream(Subsystem.GENERAL)
    segments = list(Segment)
    regions = list(Region)
    base = create_initial_market_state()

    teams = []
    for i in range(count):
        team_id = f"team-{i + 1}"
        chosen = rng.shuffle(list(segments))[: rng.int(1, 3)]
        products = []
        for segment in sorted(chosen):
            price_range = base.demand_for(segment).price_range
            products.append(Product(
                product_id=f"{team_id}-{segment.name.lower()}",
                segment=segment,
                price=round(rng.range(price_range.min_price, price_range.max_price), 2),
                quality=round(rng.range(40, 95), 1),
                name=f"{team_id} {segment.label}",
                feature_set=FeatureSet(*(round(rng.range(20, 90), 1) for _ in range(6))),
                applied_techs=(f"tech-{rng.int(1, 4)}",),
                unit_cost=round(price_range.min_price * 0.4, 2),
            ))
        teams.append(TeamEntry(
            team_id=team_id,
            state=TeamState(
                brand_value=round(rng.range(0.2, 0.8), 3),
                esg_score=round(rng.range(100, 800)),
                rd_budget=round(rng.range(1_000_000, 6_000_000)),
                products=tuple(products),
                factories=(Factory(
                    factory_id=f"{team_id}-f1",
                    region=rng.pick(regions),
                    efficiency=round(rng.range(0.5, 0.9), 2),
                    defect_rate=round(rng.range(0.02, 0.08), 3),
                ),),
                eps=round(rng.gaussian(2.0, 0.5), 2),
            ),
        ))
    return teams


def _run(args: argparse.Namespace) -> None:
    import dataclasses

    from market_engine.config import MarketConfig
    from market_engine.core.competition import CompetitionState, register_tech_completion
    from market_engine.core.enums import TechFamily
    from market_engine.core.models import create_initial_market_state
    from market_engine.engine.evolution import calculate_rankings, generate_next_market_state
    from market_engine.engine.market_simulator import simulate_market
    from market_engine.systems.context import create_engine_context
    from market_engine.utils.logging import setup_logging
    from market_engine.utils.replay import ReplayRecorder

    overrides = {"log_level": args.log_level}
    if args.temperature is not None:
        overrides["softmax_temperature"] = args.temperature
    config = dataclasses.replace(MarketConfig(), **overrides)
    setup_logging(config.log_level)

    schedule = _parse_events(args.event)
    teams = _build_teams(args.seed, args.teams)
    recorder = ReplayRecorder(args.replay, args.seed)
    market = create_initial_market_state()
    competition = CompetitionState()

    logger.info("Match %r: %d teams, %d rounds", args.seed, len(teams), args.rounds)
    for round_number in range(1, args.rounds + 1):
        ctx = create_engine_context(args.seed, round_number)
        if round_number > 1:
            market = generate_next_market_state(
                market, ctx, events=schedule.get(round_number, ()), teams=teams, config=config,
            )

        # The first team to field tech-1 earns the arms-race bonus in round 2
        if round_number == 2 and teams:
            competition = register_tech_completion(
                competition, teams[0].team_id, "tech-1", TechFamily.BATTERY, round_number,
            )

        result = simulate_market(
            teams, market, ctx,
            competition_state=competition,
            apply_rubber_banding=args.rubber_banding,
            config=config,
        )
        competition = result.competition.updated_state
        recorder.record_round(ctx, market, result)

        for ranking in calculate_rankings(teams, result):
            logger.info(
                "  %-8s rank %d  revenue $%12.0f  share-rank %d",
                ranking.team_id, ranking.rank, result.revenue_by_team[ranking.team_id], ranking.share_rank,
            )
        for event in result.competition.market_events:
            logger.info("  event: %s", event.description)

    recorder.flush()


def _print_seeds(args: argparse.Namespace) -> None:
    from market_engine.core.enums import SUBSYSTEM_KEYS
    from market_engine.systems.context import derive_seed_bundle

    bundle = derive_seed_bundle(args.seed, args.round)
    for subsystem, seed in bundle.seeds.items():
        print(f"{SUBSYSTEM_KEYS[subsystem]:<10} {seed}")


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "seeds":
        _print_seeds(args)
    elif args.command == "run":
        _run(args)
    else:
        # Default: run with defaults
        _run(parser.parse_args(["run"]))


if __name__ == "__main__":
    main()
