"""Shot selection while no hit is waiting to be followed up."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from salvo.engine.rules import KnowledgeGrid
from salvo.engine.ship import BOARD_SIZE, CellState, Coordinate

from .probability import ProbabilityCalculator

PATTERN_BONUS = 10

_SPACE_STATES = (CellState.UNKNOWN, CellState.HIT)


class PatternMode(Enum):
    DIAGONAL_STRIPES = "diagonal_stripes"  # x % 3 == y % 3, about a third of the board
    CHECKERBOARD = "checkerboard"  # (x + y) % 2 == parity, half the board


class HuntMode:
    """Blind search: heatmap weighted towards a coverage pattern.

    Stripes cover every placement of a ship of three or more; once only
    two-cell ships are left the denser checkerboard is needed.
    """

    def __init__(self, board: KnowledgeGrid, remaining_ships: Sequence[int]) -> None:
        self.board = board
        self.remaining_ships = list(remaining_ships)
        self.pattern_mode = self._determine_pattern_mode()

    def _determine_pattern_mode(self) -> PatternMode:
        largest = max(self.remaining_ships, default=2)
        return PatternMode.DIAGONAL_STRIPES if largest >= 3 else PatternMode.CHECKERBOARD

    def find_best_shot(self) -> Coordinate:
        heatmap = ProbabilityCalculator(self.board, self.remaining_ships).calculate()
        parity = self.preferred_parity() if self.pattern_mode is PatternMode.CHECKERBOARD else 0

        best: Coordinate | None = None
        best_score = -1
        for y in range(BOARD_SIZE):
            for x in range(BOARD_SIZE):
                if self.board[y, x] != CellState.UNKNOWN:
                    continue
                if not self.can_any_ship_fit_through(x, y):
                    continue

                score = int(heatmap[y, x])
                if self._on_pattern(x, y, parity):
                    score *= PATTERN_BONUS
                if score > best_score:
                    best_score = score
                    best = Coordinate(x, y)

        return best or self._first_unknown_cell()

    def _on_pattern(self, x: int, y: int, parity: int) -> bool:
        if self.pattern_mode is PatternMode.DIAGONAL_STRIPES:
            return x % 3 == y % 3
        return (x + y) % 2 == parity

    def preferred_parity(self) -> int:
        """Checkerboard colour (0 or 1) with more UNKNOWN cells left; ties go to 0."""
        even = odd = 0
        for y in range(BOARD_SIZE):
            for x in range(BOARD_SIZE):
                if self.board[y, x] == CellState.UNKNOWN:
                    if (x + y) % 2 == 0:
                        even += 1
                    else:
                        odd += 1
        return 0 if even >= odd else 1

    def can_any_ship_fit_through(self, x: int, y: int) -> bool:
        """Whether the smallest remaining ship fits through (x, y) in some direction."""
        if not self.remaining_ships:
            return False
        smallest = min(self.remaining_ships)

        horizontal = self._count_space(x, y, 1, 0) + self._count_space(x, y, -1, 0) + 1
        if horizontal >= smallest:
            return True
        vertical = self._count_space(x, y, 0, 1) + self._count_space(x, y, 0, -1) + 1
        return vertical >= smallest

    def _count_space(self, x: int, y: int, dx: int, dy: int) -> int:
        count = 0
        x, y = x + dx, y + dy
        while 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE and self.board[y, x] in _SPACE_STATES:
            count += 1
            x, y = x + dx, y + dy
        return count

    def _first_unknown_cell(self) -> Coordinate:
        for y in range(BOARD_SIZE):
            for x in range(BOARD_SIZE):
                if self.board[y, x] == CellState.UNKNOWN:
                    return Coordinate(x, y)
        raise RuntimeError("No unknown cell left to shoot at.")

    def find_best_shot_with_hits(self, active_hits: Sequence[Coordinate]) -> Coordinate:
        """Highest hit-aware probability cell, ignoring the coverage pattern.

        Used when target mode cannot extend a line from the current hits.
        """
        heatmap = ProbabilityCalculator(self.board, self.remaining_ships, active_hits).calculate()

        best: Coordinate | None = None
        best_probability = -1
        for y in range(BOARD_SIZE):
            for x in range(BOARD_SIZE):
                if self.board[y, x] == CellState.UNKNOWN and heatmap[y, x] > best_probability:
                    best_probability = int(heatmap[y, x])
                    best = Coordinate(x, y)

        return best or self._first_unknown_cell()
