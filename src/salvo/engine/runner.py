"""Batch play and aggregate statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from salvo.ai.player import Player

from .game import GameEngine
from .move_log import MoveLog

logger = logging.getLogger(__name__)

PlayerFactory = Callable[[], Player]
EngineFactory = Callable[..., GameEngine]

LOGGED_GAMES = 5
PROGRESS_INTERVAL = 100


@dataclass(frozen=True)
class Statistics:
    total_games: int
    player1_wins: int
    player2_wins: int
    avg_player1_shots: float
    avg_player2_shots: float

    @property
    def player1_win_rate(self) -> float:
        """Percentage of games won by player 1."""
        return self.player1_wins / self.total_games * 100 if self.total_games else 0.0

    def __str__(self) -> str:
        return "\n".join(
            [
                "=== Game Statistics ===",
                f"Total Games: {self.total_games}",
                f"Player 1 Wins: {self.player1_wins} ({self.player1_win_rate:.1f}%)",
                f"Player 2 Wins: {self.player2_wins} ({100 - self.player1_win_rate:.1f}%)",
                f"Avg Player 1 Shots: {self.avg_player1_shots:.1f}",
                f"Avg Player 2 Shots: {self.avg_player2_shots:.1f}",
            ]
        )


class GameRunner:
    """Plays many games with fresh players each time; nothing is shared between games."""

    def __init__(self, engine_factory: EngineFactory = GameEngine, log_dir: str | Path = ".") -> None:
        self.engine_factory = engine_factory
        self.log_dir = Path(log_dir)

    def run_games(
        self,
        player1_factory: PlayerFactory,
        player2_factory: PlayerFactory,
        num_games: int,
        with_logging: bool = False,
    ) -> Statistics:
        player1_wins = 0
        player1_shots = 0
        player2_shots = 0

        for index in range(1, num_games + 1):
            move_log = None
            if with_logging and index <= LOGGED_GAMES:
                move_log = MoveLog(self.log_dir, suffix=f"-{index}")
            engine = self.engine_factory(player1_factory(), player2_factory(), move_log)
            result = engine.play_game()

            if result.winner == 1:
                player1_wins += 1
            player1_shots += result.player1_shots
            player2_shots += result.player2_shots

            if index % PROGRESS_INTERVAL == 0:
                logger.info("Completed %d games...", index)

        return Statistics(
            total_games=num_games,
            player1_wins=player1_wins,
            player2_wins=num_games - player1_wins,
            avg_player1_shots=player1_shots / num_games if num_games else 0.0,
            avg_player2_shots=player2_shots / num_games if num_games else 0.0,
        )
