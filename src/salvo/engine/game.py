"""Two-player turn sequencer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from salvo.ai.player import Player
from salvo.telemetry import get_meter, get_tracer

from .board import Board, PlacementError
from .move_log import MoveLog
from .ship import Coordinate, ShotResult

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.game")
meter = get_meter("salvo.engine.game")

TURN_COUNTER = meter.create_counter(
    "salvo_engine_turns",
    unit="1",
    description="Number of shots played by GameEngine",
)


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Seat(Enum):
    """The two sides of a match."""

    PLAYER1 = 1
    PLAYER2 = 2

    def opponent(self) -> Seat:
        return Seat.PLAYER2 if self is Seat.PLAYER1 else Seat.PLAYER1


@dataclass(frozen=True)
class GameResult:
    winner: int
    player1_shots: int
    player2_shots: int


class GameEngine:
    """Plays one game between two players, player 1 shooting first.

    Each board adjudicates the shots aimed at its owner's fleet; the game ends
    as soon as either fleet is fully sunk.
    """

    def __init__(self, player1: Player, player2: Player, move_log: MoveLog | None = None) -> None:
        self.players: dict[Seat, Player] = {Seat.PLAYER1: player1, Seat.PLAYER2: player2}
        self.boards: dict[Seat, Board] = {
            Seat.PLAYER1: Board(owner="player1"),
            Seat.PLAYER2: Board(owner="player2"),
        }
        self.shots: dict[Seat, int] = {Seat.PLAYER1: 0, Seat.PLAYER2: 0}
        self.move_log = move_log
        self.phase = GamePhase.SETUP
        self.current: Seat = Seat.PLAYER1

    def play_game(self) -> GameResult:
        self.place_fleets()
        while not self.is_game_over():
            self.play_turn(self.current)
            self.current = self.current.opponent()
        return self.finalize_game()

    def place_fleets(self) -> None:
        with tracer.start_as_current_span("game.place_fleets"):
            for seat, player in self.players.items():
                placements = player.place_fleet()
                try:
                    self.boards[seat].place_fleet(placements)
                except PlacementError as exc:
                    logger.error("game_aborted_invalid_fleet", extra={"player": seat.value})
                    raise PlacementError(f"Player {seat.value} provided invalid ship placement") from exc
                if self.move_log is not None and seat is Seat.PLAYER1:
                    for placement in placements:
                        self.move_log.ship_placement(placement)
            self.phase = GamePhase.IN_PROGRESS
            self.current = Seat.PLAYER1

    def play_turn(self, seat: Seat) -> tuple[Coordinate, ShotResult]:
        """Let ``seat`` fire one shot and tell both players how it landed."""
        with tracer.start_as_current_span("game.play_turn") as span:
            if self.phase is not GamePhase.IN_PROGRESS:
                logger.error("turn_rejected_game_not_in_progress", extra={"phase": self.phase.value})
                raise RuntimeError("Game is not in progress.")
            shooter = self.players[seat]
            opponent = self.players[seat.opponent()]

            shot = shooter.next_shot()
            result = self.boards[seat.opponent()].receive_shot(shot)
            self.shots[seat] += 1

            shooter.on_own_shot_result(shot, result)
            opponent.on_opponent_shot(shot, result)

            if self.move_log is not None:
                if seat is Seat.PLAYER1:
                    self.move_log.shot(shot, result)
                else:
                    self.move_log.enemy_shot(shot, result)

            span.set_attribute("player", seat.value)
            span.set_attribute("shot.x", shot.x)
            span.set_attribute("shot.y", shot.y)
            span.set_attribute("shot.outcome", result.outcome.value)
            TURN_COUNTER.add(1, attributes={"result": result.outcome.value, "player": seat.value})

            if self.is_game_over():
                self.phase = GamePhase.FINISHED
            return shot, result

    def is_game_over(self) -> bool:
        return any(board.all_ships_sunk() for board in self.boards.values())

    def finalize_game(self) -> GameResult:
        winner = Seat.PLAYER1 if self.boards[Seat.PLAYER2].all_ships_sunk() else Seat.PLAYER2
        result = GameResult(
            winner=winner.value,
            player1_shots=self.shots[Seat.PLAYER1],
            player2_shots=self.shots[Seat.PLAYER2],
        )
        if self.move_log is not None:
            self.move_log.game_over(winner is Seat.PLAYER1, result.player1_shots, result.player2_shots)
            for placement in self.boards[Seat.PLAYER2].placements():
                self.move_log.enemy_ship(placement)
            self.move_log.flush()

        logger.info(
            "game_finished",
            extra={
                "winner": result.winner,
                "player1_shots": result.player1_shots,
                "player2_shots": result.player2_shots,
            },
        )
        return result
