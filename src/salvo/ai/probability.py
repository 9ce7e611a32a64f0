"""Placement-counting heatmaps over a knowledge grid."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence, TypeAlias

import numpy as np
import numpy.typing as npt
from numpy.lib.stride_tricks import sliding_window_view

from salvo.engine.rules import KnowledgeGrid
from salvo.engine.ship import BOARD_SIZE, CellState, Coordinate

Heatmap: TypeAlias = npt.NDArray[np.int64]
BoolGrid: TypeAlias = npt.NDArray[np.bool_]

PATTERN_THINNING_FACTOR = 10


def diagonal_stripe_mask() -> BoolGrid:
    """Cells with ``x % 3 == y % 3``, indexed ``[y, x]``."""
    ys, xs = np.indices((BOARD_SIZE, BOARD_SIZE))
    return (xs % 3) == (ys % 3)


def open_cells(board: KnowledgeGrid) -> BoolGrid:
    """Cells a hypothetical ship may cover: UNKNOWN or HIT and not touching a SUNK cell."""
    sunk = board == CellState.SUNK
    touching_sunk = np.zeros_like(sunk)
    touching_sunk[1:, :] |= sunk[:-1, :]
    touching_sunk[:-1, :] |= sunk[1:, :]
    touching_sunk[:, 1:] |= sunk[:, :-1]
    touching_sunk[:, :-1] |= sunk[:, 1:]
    return ((board == CellState.UNKNOWN) | (board == CellState.HIT)) & ~touching_sunk


class ProbabilityCalculator:
    """Counts, for every cell, the legal placements of the remaining ships covering it.

    With ``active_hits`` the count is restricted to placements passing through
    at least one of those hits, since the ship in contact must cover one.
    The enumeration is exhaustive; the grid is small enough to redo per shot.
    """

    def __init__(
        self,
        board: KnowledgeGrid,
        remaining_ships: Iterable[int],
        active_hits: Sequence[Coordinate] = (),
    ) -> None:
        self.board = board
        self.remaining_ships = list(remaining_ships)
        self.active_hits = list(active_hits)

    def calculate(self) -> Heatmap:
        required: BoolGrid | None = None
        if self.active_hits:
            required = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=bool)
            for hit in self.active_hits:
                required[hit.y, hit.x] = True

        open_mask = open_cells(self.board)
        heatmap: Heatmap = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=np.int64)

        for size, copies in Counter(self.remaining_ships).items():
            if size < 1 or size > BOARD_SIZE:
                continue
            anchors = BOARD_SIZE - size + 1

            horizontal = sliding_window_view(open_mask, size, axis=1).all(axis=-1)
            vertical = sliding_window_view(open_mask, size, axis=0).all(axis=-1)
            if required is not None:
                horizontal &= sliding_window_view(required, size, axis=1).any(axis=-1)
                vertical &= sliding_window_view(required, size, axis=0).any(axis=-1)

            horizontal_counts = horizontal.astype(np.int64) * copies
            vertical_counts = vertical.astype(np.int64) * copies
            for offset in range(size):
                heatmap[:, offset : offset + anchors] += horizontal_counts
                heatmap[offset : offset + anchors, :] += vertical_counts

        heatmap[self.board != CellState.UNKNOWN] = 0
        return heatmap

    def calculate_with_hits(self, hits: Sequence[Coordinate]) -> Heatmap:
        return ProbabilityCalculator(self.board, self.remaining_ships, hits).calculate()

    @staticmethod
    def apply_pattern_optimization(heatmap: Heatmap) -> Heatmap:
        """Divide down every cell off the ``x % 3 == y % 3`` stripes."""
        thinned = heatmap.copy()
        off_pattern = ~diagonal_stripe_mask()
        thinned[off_pattern] //= PATTERN_THINNING_FACTOR
        return thinned
