"""Placement rules: bounds, no overlap and the orthogonal no-touch rule."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

import numpy as np
import numpy.typing as npt

from .ship import SHIP_SIZES, CellState, Ship

KnowledgeGrid = npt.NDArray[np.int8]

_CLOSED_STATES = (CellState.MISS, CellState.SUNK, CellState.BLOCKED)


def can_place(ship: Ship, existing_ships: Iterable[Ship]) -> bool:
    """Return True if ``ship`` is in bounds and neither overlaps nor touches ``existing_ships``.

    Ships may share a diagonal corner but never an edge.
    """
    if not ship.is_valid():
        return False

    occupied: set = set()
    forbidden: set = set()
    for other in existing_ships:
        occupied.update(other.cells)
        forbidden.update(other.orthogonal_neighbors())

    return not any(cell in occupied or cell in forbidden for cell in ship.cells)


def can_place_on_knowledge_grid(ship: Ship, grid: KnowledgeGrid) -> bool:
    """Check a hypothetical ship against partial knowledge of an opponent's board.

    The ship may not cover a MISS, SUNK or BLOCKED cell, nor any cell that
    borders a SUNK cell. ``grid`` is indexed ``[y, x]``.
    """
    if not ship.is_valid():
        return False

    for cell in ship.cells:
        if grid[cell.y, cell.x] in _CLOSED_STATES:
            return False
        for neighbour in cell.orthogonal_neighbors():
            if grid[neighbour.y, neighbour.x] == CellState.SUNK:
                return False
    return True


def validate_fleet(ships: Sequence[Ship]) -> bool:
    """True iff ``ships`` is exactly the standard fleet and no pair breaks a rule."""
    if Counter(ship.size for ship in ships) != Counter(SHIP_SIZES):
        return False

    for index, ship in enumerate(ships):
        if not can_place(ship, ships[:index]):
            return False
    return True
