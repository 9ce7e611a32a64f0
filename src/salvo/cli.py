"""Command-line driver: single games, benchmarks and tournament play."""

from __future__ import annotations

import argparse
import random
from pathlib import Path

from salvo.ai.instrumented_player import InstrumentedSmartPlayer
from salvo.ai.player import RandomPlayer
from salvo.client import ClientConfig, TournamentClient
from salvo.engine.instrumented_game import InstrumentedGameEngine
from salvo.engine.move_log import MoveLog
from salvo.engine.runner import GameRunner, Statistics
from salvo.telemetry import init_telemetry

BENCHMARK_GAMES = 1000
STATS_GAMES = 100


def _seeded(rng: random.Random) -> random.Random:
    return random.Random(rng.getrandbits(32))


def run_single_game(seed: int | None, log_dir: Path) -> None:
    print("Starting Battleships game...\n")
    rng = random.Random(seed)
    move_log = MoveLog(log_dir)
    engine = InstrumentedGameEngine(
        InstrumentedSmartPlayer(_seeded(rng), name="player1"),
        InstrumentedSmartPlayer(_seeded(rng), name="player2"),
        move_log,
    )
    result = engine.play_game()

    print("=== Game Result ===")
    print(f"Winner: Player {result.winner}")
    print(f"Player 1 shots: {result.player1_shots}")
    print(f"Player 2 shots: {result.player2_shots}")
    print(f"\nLog file: {move_log.path}")


def run_benchmark(games: int, seed: int | None, log_dir: Path) -> Statistics:
    print(f"Running benchmark: SmartAI vs RandomAI ({games} games)\n")
    rng = random.Random(seed)
    runner = GameRunner(InstrumentedGameEngine, log_dir)
    stats = runner.run_games(
        lambda: InstrumentedSmartPlayer(_seeded(rng), name="smart"),
        lambda: RandomPlayer(_seeded(rng)),
        num_games=games,
        with_logging=True,
    )
    print(stats)
    return stats


def run_statistics(games: int, seed: int | None, log_dir: Path) -> Statistics:
    print(f"Running statistics: SmartAI vs SmartAI ({games} games)\n")
    rng = random.Random(seed)
    runner = GameRunner(InstrumentedGameEngine, log_dir)
    stats = runner.run_games(
        lambda: InstrumentedSmartPlayer(_seeded(rng), name="player1"),
        lambda: InstrumentedSmartPlayer(_seeded(rng), name="player2"),
        num_games=games,
        with_logging=True,
    )
    print(stats)
    return stats


def run_tournament(server: str | None, name: str | None, seed: int | None) -> None:
    config = ClientConfig.from_env(server_url=server, player_name=name)
    print("=" * 40)
    print("   Battleships Tournament Client")
    print("=" * 40)
    print(f" Server : {config.server_url}")
    print(f" Name   : {config.player_name}")
    print("=" * 40)
    player = InstrumentedSmartPlayer(random.Random(seed), name=config.player_name)
    TournamentClient(config, player).run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Probabilistic Battleships player.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--tournament", action="store_true", help="Play on a tournament server.")
    mode.add_argument(
        "--benchmark", action="store_true", help="SmartAI vs RandomAI over many games."
    )
    mode.add_argument("--stats", action="store_true", help="SmartAI vs SmartAI over many games.")
    parser.add_argument("--games", type=int, default=None, help="Number of games to play.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--log-dir", type=Path, default=Path("."), help="Directory for move logs."
    )
    parser.add_argument("--server", default=None, help="Tournament server URL.")
    parser.add_argument("--name", default=None, help="Tournament player name.")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    init_telemetry()

    if args.tournament:
        run_tournament(args.server, args.name, args.seed)
    elif args.benchmark:
        run_benchmark(args.games or BENCHMARK_GAMES, args.seed, args.log_dir)
    elif args.stats:
        run_statistics(args.games or STATS_GAMES, args.seed, args.log_dir)
    else:
        run_single_game(args.seed, args.log_dir)


if __name__ == "__main__":
    main()
