"""Own-fleet layout: sample many random legal fleets, keep the least predictable."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from salvo.engine.ship import BOARD_SIZE, SHIP_SIZES, Coordinate, Direction, ShipPlacement

logger = logging.getLogger(__name__)

Fleet = list[ShipPlacement]


@dataclass
class PlacementConfig:
    candidates: int = 1000
    top_n: int = 10
    min_ship_separation: int = 2
    base_score: float = 100.0
    symmetry_weight: float = 20.0
    proximity_weight: float = 15.0
    entropy_weight: float = 10.0
    edge_weight: float = 5.0
    orientation_weight: float = 15.0
    jitter: float = 5.0


class PlacementStrategy:
    """Generates fleet layouts that are hard to guess.

    Each candidate is built greedily, largest ship first, choosing uniformly
    among the legal anchors left; a candidate that runs out of room is
    dropped, not repaired. Candidates are scored for asymmetry, spacing,
    spread, distance from the edges and a mix of orientations, and one of the
    best few is returned at random so the layout never settles into a
    recognisable favourite.
    """

    def __init__(self, rng: random.Random | None = None, config: PlacementConfig | None = None) -> None:
        self.rng = rng or random.Random()
        self.config = config or PlacementConfig()

    def generate_optimal_placement(self) -> Fleet:
        scored: list[tuple[Fleet, float]] = []
        dropped = 0
        for _ in range(self.config.candidates):
            fleet = self.generate_random_valid_placement()
            if fleet is None:
                dropped += 1
                continue
            score = self.evaluate_placement(fleet)
            if score > 0:
                scored.append((fleet, score))

        logger.debug(
            "placement_candidates_scored",
            extra={"kept": len(scored), "dropped": dropped, "requested": self.config.candidates},
        )

        if not scored:
            while True:
                fleet = self.generate_random_valid_placement()
                if fleet is not None:
                    return fleet

        scored.sort(key=lambda item: item[1], reverse=True)
        top = scored[: self.config.top_n]
        return top[self.rng.randrange(len(top))][0]

    def generate_random_valid_placement(self) -> Fleet | None:
        """One greedy pass over the fleet; None if some ship has no legal anchor left."""
        blocked = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=bool)
        fleet: Fleet = []
        for size in sorted(SHIP_SIZES, reverse=True):
            keys = _legal_anchor_keys(size, blocked)
            if keys.size == 0:
                return None
            placement = _decode_anchor_key(size, int(keys[self.rng.randrange(keys.size)]))
            fleet.append(placement)
            _block(blocked, placement)
        return fleet

    @staticmethod
    def legal_placements(size: int, blocked: np.ndarray) -> list[ShipPlacement]:
        """Every in-bounds placement of ``size`` avoiding ``blocked`` cells, in (y, x, direction) order.

        ``blocked`` marks ship cells and their orthogonal neighbours, so this is
        the same test as ``can_place`` against the ships already chosen.
        """
        return [_decode_anchor_key(size, int(key)) for key in _legal_anchor_keys(size, blocked)]

    def evaluate_placement(self, fleet: Sequence[ShipPlacement]) -> float:
        """Higher is better; starts from ``base_score`` and can go negative."""
        cfg = self.config
        ships = [placement.cells() for placement in fleet]
        score = cfg.base_score
        score -= symmetry_penalty(ships) * cfg.symmetry_weight
        score -= proximity_penalty(ships, cfg.min_ship_separation) * cfg.proximity_weight
        score += entropy_bonus(ships) * cfg.entropy_weight
        score -= edge_penalty(ships) * cfg.edge_weight
        score += orientation_mix_score(fleet) * cfg.orientation_weight
        score += self.rng.random() * cfg.jitter
        return score


_DIRECTIONS = (Direction.HORIZONTAL, Direction.VERTICAL)


def blocked_mask(placements: Sequence[ShipPlacement]) -> np.ndarray:
    """Cells no further ship may cover: the placements and their orthogonal neighbours."""
    blocked = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=bool)
    for placement in placements:
        _block(blocked, placement)
    return blocked


def _block(blocked: np.ndarray, placement: ShipPlacement) -> None:
    for cell in placement.cells():
        blocked[cell.y, cell.x] = True
        for neighbour in cell.orthogonal_neighbors():
            blocked[neighbour.y, neighbour.x] = True


def _legal_anchor_keys(size: int, blocked: np.ndarray) -> np.ndarray:
    # key = (y * BOARD_SIZE + x) * 2 + direction index, sorted ascending
    free = ~blocked
    horizontal = sliding_window_view(free, size, axis=1).all(axis=-1)
    vertical = sliding_window_view(free, size, axis=0).all(axis=-1)
    h_y, h_x = np.nonzero(horizontal)
    v_y, v_x = np.nonzero(vertical)
    keys = np.concatenate(((h_y * BOARD_SIZE + h_x) * 2, (v_y * BOARD_SIZE + v_x) * 2 + 1))
    keys.sort()
    return keys


def _decode_anchor_key(size: int, key: int) -> ShipPlacement:
    cell, direction = divmod(key, 2)
    y, x = divmod(cell, BOARD_SIZE)
    return ShipPlacement(size, Coordinate(x, y), _DIRECTIONS[direction])


def symmetry_penalty(ships: Sequence[Sequence[Coordinate]]) -> float:
    """+0.5 per cell whose mirror image across the board centre is also occupied, per axis."""
    cells = [cell for ship in ships for cell in ship]
    occupied = {(cell.x, cell.y) for cell in cells}
    center = BOARD_SIZE / 2.0
    penalty = 0.0
    for cell in cells:
        if (int(2 * center - cell.x), cell.y) in occupied:
            penalty += 0.5
        if (cell.x, int(2 * center - cell.y)) in occupied:
            penalty += 0.5
    return penalty


def min_manhattan_distance(first: Sequence[Coordinate], second: Sequence[Coordinate]) -> int:
    return min(abs(a.x - b.x) + abs(a.y - b.y) for a in first for b in second)


def proximity_penalty(ships: Sequence[Sequence[Coordinate]], min_separation: int = 2) -> float:
    """Penalty for ship pairs closer than one clear cell beyond the mandatory gap."""
    penalty = 0.0
    threshold = min_separation + 1
    for index, ship in enumerate(ships):
        for other in ships[index + 1 :]:
            distance = min_manhattan_distance(ship, other)
            if distance < threshold:
                penalty += threshold - distance
    return penalty


def entropy_bonus(ships: Sequence[Sequence[Coordinate]]) -> float:
    """Spread of occupied cells: (var(x) + var(y)) / 10."""
    xs = np.array([cell.x for ship in ships for cell in ship], dtype=float)
    ys = np.array([cell.y for ship in ships for cell in ship], dtype=float)
    return float(xs.var() + ys.var()) / 10.0


def edge_penalty(ships: Sequence[Sequence[Coordinate]]) -> float:
    penalty = 0.0
    for ship in ships:
        for cell in ship:
            edge_distance = min(cell.x, cell.y, BOARD_SIZE - 1 - cell.x, BOARD_SIZE - 1 - cell.y)
            if edge_distance == 0:
                penalty += 1.0
            elif edge_distance == 1:
                penalty += 0.3
    return penalty


def orientation_mix_score(fleet: Sequence[ShipPlacement]) -> float:
    """1.0 for an even horizontal/vertical split down to 0.0 for one orientation, +0.5 near even."""
    horizontal = sum(1 for placement in fleet if placement.direction is Direction.HORIZONTAL)
    ratio = horizontal / len(fleet)
    score = 1.0 - abs(ratio - 0.5) * 2
    if 0.35 <= ratio <= 0.65:
        score += 0.5
    return score
