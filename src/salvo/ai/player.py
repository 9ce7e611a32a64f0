"""Players: the decision-engine facade and a uniform-random baseline."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Protocol

from salvo.engine.ship import BOARD_SIZE, Coordinate, ShipPlacement, ShotResult

from .hunt import HuntMode
from .placement import PlacementConfig, PlacementStrategy
from .target import TargetMode
from .tracking import TrackingBoard

logger = logging.getLogger(__name__)


class Player(Protocol):
    """What an orchestrator needs from a player."""

    def place_fleet(self) -> list[ShipPlacement]: ...

    def next_shot(self) -> Coordinate: ...

    def on_own_shot_result(self, position: Coordinate, result: ShotResult) -> None: ...

    def on_opponent_shot(self, position: Coordinate, result: ShotResult) -> None: ...

    def reset_for_new_game(self) -> None: ...


class ShotMode(Enum):
    HUNT = "hunt"
    TARGET = "target"
    FALLBACK = "fallback"


class SmartPlayer:
    """Probabilistic player; one instance per concurrent game.

    Hunts with a pattern-weighted heatmap while no hit is open, targets along
    the line of the open hits otherwise, and falls back to the hit-aware
    heatmap when no line can be extended. Every random choice goes through
    ``rng``.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        placement_config: PlacementConfig | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.tracking_board = TrackingBoard()
        self.placement_strategy = PlacementStrategy(self.rng, placement_config)
        self.fleet: list[ShipPlacement] = []

    def place_fleet(self) -> list[ShipPlacement]:
        self.fleet = self.placement_strategy.generate_optimal_placement()
        return list(self.fleet)

    def next_shot(self) -> Coordinate:
        coord, _ = self.choose_shot()
        return coord

    def choose_shot(self) -> tuple[Coordinate, ShotMode]:
        """Return the next shot and the mode that produced it."""
        board = self.tracking_board
        if not board.has_unknown_cells():
            raise RuntimeError("Every cell has already been shot.")

        active_hits = board.active_hits
        if not active_hits:
            return HuntMode(board.state, board.remaining_ships).find_best_shot(), ShotMode.HUNT

        # Only ships long enough to still be afloat under the current hits.
        candidates = board.filtered_remaining_ships()
        target = TargetMode(board.state, candidates).find_best_target(active_hits)
        if target is not None:
            return target, ShotMode.TARGET

        logger.debug(
            "target_fallback",
            extra={"active_hits": [str(hit) for hit in active_hits], "candidates": candidates},
        )
        fallback = HuntMode(board.state, candidates).find_best_shot_with_hits(active_hits)
        return fallback, ShotMode.FALLBACK

    def on_own_shot_result(self, position: Coordinate, result: ShotResult) -> None:
        self.tracking_board.record_shot(position, result)

    def on_opponent_shot(self, position: Coordinate, result: ShotResult) -> None:
        # Opponent behaviour is not modelled.
        pass

    def reset_for_new_game(self) -> None:
        self.tracking_board.reset()
        self.fleet = []


class RandomPlayer:
    """Baseline that fires uniformly at random among cells it has not tried."""

    def __init__(
        self,
        rng: random.Random | None = None,
        placement_config: PlacementConfig | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.placement_strategy = PlacementStrategy(self.rng, placement_config)
        self.shots_fired: set[Coordinate] = set()

    def place_fleet(self) -> list[ShipPlacement]:
        return self.placement_strategy.generate_optimal_placement()

    def next_shot(self) -> Coordinate:
        available = [
            Coordinate(x, y)
            for y in range(BOARD_SIZE)
            for x in range(BOARD_SIZE)
            if Coordinate(x, y) not in self.shots_fired
        ]
        if not available:
            raise RuntimeError("Every cell has already been shot.")
        shot = self.rng.choice(available)
        self.shots_fired.add(shot)
        return shot

    def on_own_shot_result(self, position: Coordinate, result: ShotResult) -> None:
        self.shots_fired.add(position)

    def on_opponent_shot(self, position: Coordinate, result: ShotResult) -> None:
        pass

    def reset_for_new_game(self) -> None:
        self.shots_fired.clear()
