"""Tests for the two-player game engine."""

from __future__ import annotations

import random
from pathlib import Path

import pytest
from salvo.ai.placement import PlacementConfig
from salvo.ai.player import RandomPlayer, SmartPlayer
from salvo.engine.board import PlacementError
from salvo.engine.game import GameEngine, GamePhase, Seat
from salvo.engine.move_log import MoveLog
from salvo.engine.ship import Coordinate, ShipPlacement, ShotResult


class BrokenFleetPlayer(RandomPlayer):
    def place_fleet(self) -> list[ShipPlacement]:
        return []


def _smart(seed: int, config: PlacementConfig) -> SmartPlayer:
    return SmartPlayer(rng=random.Random(seed), placement_config=config)


def test_full_game_ends_with_one_fleet_sunk(fast_placement: PlacementConfig) -> None:
    engine = GameEngine(_smart(1, fast_placement), _smart(2, fast_placement))
    result = engine.play_game()

    assert result.winner in (1, 2)
    assert result.player1_shots > 0 and result.player2_shots > 0
    assert result.player1_shots - result.player2_shots in (0, 1)
    loser = Seat.PLAYER2 if result.winner == 1 else Seat.PLAYER1
    assert engine.boards[loser].all_ships_sunk()
    assert not engine.boards[loser.opponent()].all_ships_sunk()
    assert engine.phase is GamePhase.FINISHED


def test_player_one_shoots_first(fast_placement: PlacementConfig) -> None:
    engine = GameEngine(_smart(3, fast_placement), _smart(4, fast_placement))
    engine.place_fleets()
    engine.play_turn(Seat.PLAYER1)
    assert engine.shots == {Seat.PLAYER1: 1, Seat.PLAYER2: 0}


def test_invalid_fleet_aborts_the_game(fast_placement: PlacementConfig) -> None:
    engine = GameEngine(_smart(5, fast_placement), BrokenFleetPlayer(rng=random.Random(6)))
    with pytest.raises(PlacementError, match="Player 2 provided invalid ship placement"):
        engine.play_game()


def test_turn_before_setup_raises(fast_placement: PlacementConfig) -> None:
    engine = GameEngine(_smart(7, fast_placement), _smart(8, fast_placement))
    with pytest.raises(RuntimeError):
        engine.play_turn(Seat.PLAYER1)


def test_players_are_told_about_each_shot(fast_placement: PlacementConfig) -> None:
    class Recorder(SmartPlayer):
        def __init__(self, *args, **kwargs) -> None:
            super().__init__(*args, **kwargs)
            self.own: list[tuple[Coordinate, ShotResult]] = []
            self.incoming: list[tuple[Coordinate, ShotResult]] = []

        def on_own_shot_result(self, coord: Coordinate, result: ShotResult) -> None:
            super().on_own_shot_result(coord, result)
            self.own.append((coord, result))

        def on_opponent_shot(self, coord: Coordinate, result: ShotResult) -> None:
            self.incoming.append((coord, result))

    first = Recorder(rng=random.Random(9), placement_config=fast_placement)
    second = Recorder(rng=random.Random(10), placement_config=fast_placement)
    engine = GameEngine(first, second)
    engine.place_fleets()
    shot, result = engine.play_turn(Seat.PLAYER1)

    assert first.own == [(shot, result)]
    assert second.incoming == [(shot, result)]


def test_game_writes_move_log(tmp_path: Path, fast_placement: PlacementConfig) -> None:
    move_log = MoveLog(tmp_path)
    result = GameEngine(_smart(11, fast_placement), _smart(12, fast_placement), move_log).play_game()

    text = move_log.path.read_text(encoding="utf-8")
    lines = text.splitlines()
    assert sum("place-ship:" in line for line in lines) == 10
    assert sum("enemy-ship:" in line for line in lines) == 10
    assert sum(" shot:" in line for line in lines) == result.player1_shots
    assert sum("enemy-shot:" in line for line in lines) == result.player2_shots
    outcome = "win" if result.winner == 1 else "loss"
    assert f"game-over: result={outcome}" in text
