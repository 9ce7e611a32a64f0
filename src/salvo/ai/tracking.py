"""Knowledge about the opponent's board, accumulated shot by shot."""

from __future__ import annotations

import logging
from collections import deque
from itertools import groupby
from typing import Sequence

import numpy as np

from salvo.engine.rules import KnowledgeGrid
from salvo.engine.ship import BOARD_SIZE, SHIP_SIZES, CellState, Coordinate, ShotResult

logger = logging.getLogger(__name__)


def new_knowledge_grid() -> KnowledgeGrid:
    return np.full((BOARD_SIZE, BOARD_SIZE), CellState.UNKNOWN, dtype=np.int8)


def _find_consecutive_run(values: Sequence[int], length: int) -> list[int] | None:
    """First window of ``length`` sorted values that increase by exactly one each step."""
    for start in range(len(values) - length + 1):
        window = values[start : start + length]
        if all(b - a == 1 for a, b in zip(window, window[1:])):
            return list(window)
    return None


def _longest_run(values: list[int]) -> int:
    longest = current = 1
    for previous, value in zip(values, values[1:]):
        current = current + 1 if value == previous + 1 else 1
        longest = max(longest, current)
    return longest


class TrackingBoard:
    """Per-game record of what is known about the opponent's fleet.

    ``state`` is a ``(10, 10)`` grid indexed ``[y, x]``. The active-hit list
    holds HIT cells not yet attributed to a sunk ship; whether the player is
    hunting or targeting is derived from it rather than stored.
    """

    def __init__(self) -> None:
        self.state: KnowledgeGrid = new_knowledge_grid()
        self._active_hits: list[Coordinate] = []
        self._remaining_ships: list[int] = list(SHIP_SIZES)

    @property
    def active_hits(self) -> list[Coordinate]:
        return list(self._active_hits)

    @property
    def remaining_ships(self) -> list[int]:
        return list(self._remaining_ships)

    def cell(self, coord: Coordinate) -> CellState:
        return CellState(int(self.state[coord.y, coord.x]))

    def record_shot(self, coord: Coordinate, result: ShotResult) -> None:
        if result.is_miss:
            self.state[coord.y, coord.x] = CellState.MISS
            return

        self.state[coord.y, coord.x] = CellState.HIT
        self._active_hits.append(coord)
        if result.is_sunk:
            self._handle_sunk(coord, result.ship_size or 0)

    def _handle_sunk(self, last_hit: Coordinate, ship_size: int) -> None:
        if ship_size in self._remaining_ships:
            self._remaining_ships.remove(ship_size)
        else:
            logger.warning(
                "sunk_size_not_remaining",
                extra={"ship_size": ship_size, "remaining": list(self._remaining_ships)},
            )

        sunk_cells = self.reconstruct_sunk_ship(last_hit, ship_size)
        for cell in sunk_cells:
            self.state[cell.y, cell.x] = CellState.SUNK
            if cell in self._active_hits:
                self._active_hits.remove(cell)

        for cell in sunk_cells:
            for neighbour in cell.orthogonal_neighbors():
                if self.state[neighbour.y, neighbour.x] == CellState.UNKNOWN:
                    self.state[neighbour.y, neighbour.x] = CellState.BLOCKED

        logger.debug(
            "ship_sunk",
            extra={
                "ship_size": ship_size,
                "cells": [str(cell) for cell in sunk_cells],
                "active_hits": len(self._active_hits),
            },
        )

    def reconstruct_sunk_ship(self, last_hit: Coordinate, ship_size: int) -> list[Coordinate]:
        """Work out which HIT cells made up the ship that was just sunk at ``last_hit``.

        Connected HIT cells are collected breadth-first. If they outnumber the
        ship, the first straight consecutive run of ``ship_size`` through the
        row, then the column, of ``last_hit`` is taken; failing that, the first
        ``ship_size`` cells in discovery order.
        """
        candidates: list[Coordinate] = []
        visited = {last_hit}
        queue = deque([last_hit])
        while queue:
            current = queue.popleft()
            if self.state[current.y, current.x] == CellState.HIT:
                candidates.append(current)
            for neighbour in current.orthogonal_neighbors():
                if neighbour not in visited and self.state[neighbour.y, neighbour.x] == CellState.HIT:
                    visited.add(neighbour)
                    queue.append(neighbour)

        if len(candidates) == ship_size:
            return candidates

        row = sorted(cell.x for cell in candidates if cell.y == last_hit.y)
        run = _find_consecutive_run(row, ship_size)
        if run is not None:
            return [Coordinate(x, last_hit.y) for x in run]

        column = sorted(cell.y for cell in candidates if cell.x == last_hit.x)
        run = _find_consecutive_run(column, ship_size)
        if run is not None:
            return [Coordinate(last_hit.x, y) for y in run]

        return candidates[:ship_size]

    def infer_minimum_ship_size(self) -> int:
        """Smallest size the ship under fire can have.

        N unresolved hits in a straight line would already have sunk a ship of
        size N, so the owner must be at least N + 1 long.
        """
        if not self._active_hits:
            return 1
        return self._longest_consecutive_hits() + 1

    def _longest_consecutive_hits(self) -> int:
        longest = 1
        rows = sorted(self._active_hits, key=lambda c: (c.y, c.x))
        for _, group in groupby(rows, key=lambda c: c.y):
            longest = max(longest, _longest_run([c.x for c in group]))
        columns = sorted(self._active_hits, key=lambda c: (c.x, c.y))
        for _, group in groupby(columns, key=lambda c: c.x):
            longest = max(longest, _longest_run([c.y for c in group]))
        return longest

    def filtered_remaining_ships(self) -> list[int]:
        minimum = self.infer_minimum_ship_size()
        return [size for size in self._remaining_ships if size >= minimum]

    def is_unknown(self, coord: Coordinate) -> bool:
        return coord.is_valid() and self.state[coord.y, coord.x] == CellState.UNKNOWN

    def has_unknown_cells(self) -> bool:
        return bool((self.state == CellState.UNKNOWN).any())

    def reset(self) -> None:
        self.state.fill(CellState.UNKNOWN)
        self._active_hits.clear()
        self._remaining_ships = list(SHIP_SIZES)
