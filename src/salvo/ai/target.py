"""Shot selection once at least one hit is waiting to be followed up."""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Sequence

from salvo.engine.rules import KnowledgeGrid
from salvo.engine.ship import BOARD_SIZE, CellState, Coordinate

from .probability import ProbabilityCalculator

# right, left, down, up
STEPS: tuple[tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


class Orientation(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    UNKNOWN = "unknown"


class TargetMode:
    """Finishes off a ship in contact by trying neighbours and extending along its line.

    ``find_best_target`` returns None when no line can be extended; the
    caller then falls back to the hit-aware hunt.
    """

    def __init__(self, board: KnowledgeGrid, remaining_ships: Sequence[int]) -> None:
        self.board = board
        self.remaining_ships = list(remaining_ships)

    def find_best_target(self, active_hits: Sequence[Coordinate]) -> Coordinate | None:
        if not active_hits:
            return None
        if len(active_hits) == 1:
            return self.single_hit_strategy(active_hits[0])
        return self.multiple_hits_strategy(active_hits)

    def single_hit_strategy(self, hit: Coordinate) -> Coordinate | None:
        """Pick the neighbour with the highest hit-aware weight, then the most open line."""
        heatmap = ProbabilityCalculator(self.board, self.remaining_ships, [hit]).calculate()

        candidates: list[tuple[Coordinate, int, int]] = []
        for dx, dy in STEPS:
            neighbour = Coordinate(hit.x + dx, hit.y + dy)
            if not self.can_shoot(neighbour):
                continue
            probability = int(heatmap[neighbour.y, neighbour.x])
            space = self.count_space(hit, dx, dy) + self.count_space(hit, -dx, -dy) + 1
            candidates.append((neighbour, probability, space))

        if not candidates:
            return None
        candidates.sort(key=lambda item: (item[1], item[2]), reverse=True)
        return candidates[0][0]

    def multiple_hits_strategy(self, hits: Sequence[Coordinate]) -> Coordinate | None:
        orientation = self.determine_orientation(hits)
        if orientation is Orientation.HORIZONTAL:
            return self.extend_horizontally(hits)
        if orientation is Orientation.VERTICAL:
            return self.extend_vertically(hits)
        return self.handle_mixed_hits(hits)

    @staticmethod
    def determine_orientation(hits: Sequence[Coordinate]) -> Orientation:
        """Orientation from the first two hits, else from all hits sharing a line."""
        if len(hits) < 2:
            return Orientation.UNKNOWN

        first, second = hits[0], hits[1]
        if first.y == second.y and first.x != second.x:
            return Orientation.HORIZONTAL
        if first.x == second.x and first.y != second.y:
            return Orientation.VERTICAL
        if all(hit.y == first.y for hit in hits):
            return Orientation.HORIZONTAL
        if all(hit.x == first.x for hit in hits):
            return Orientation.VERTICAL
        return Orientation.UNKNOWN

    def extend_horizontally(self, hits: Sequence[Coordinate]) -> Coordinate | None:
        y = hits[0].y
        xs = [hit.x for hit in hits]
        return self._extend_line(
            [Coordinate(x, y) for x in range(min(xs), max(xs) + 1)],
            Coordinate(max(xs) + 1, y),
            Coordinate(min(xs) - 1, y),
        )

    def extend_vertically(self, hits: Sequence[Coordinate]) -> Coordinate | None:
        x = hits[0].x
        ys = [hit.y for hit in hits]
        return self._extend_line(
            [Coordinate(x, y) for y in range(min(ys), max(ys) + 1)],
            Coordinate(x, max(ys) + 1),
            Coordinate(x, min(ys) - 1),
        )

    def _extend_line(
        self, span: list[Coordinate], after_end: Coordinate, before_start: Coordinate
    ) -> Coordinate | None:
        # Gaps between the hits first, then past the far end, then before the near end.
        for coord in (*span, after_end, before_start):
            if self.can_shoot(coord):
                return coord
        return None

    def handle_mixed_hits(self, hits: Sequence[Coordinate]) -> Coordinate | None:
        """Hits from more than one ship: work the largest group sharing a row or column."""
        rows: dict[int, list[Coordinate]] = defaultdict(list)
        columns: dict[int, list[Coordinate]] = defaultdict(list)
        for hit in hits:
            rows[hit.y].append(hit)
            columns[hit.x].append(hit)

        best_row = max(rows.values(), key=len)
        best_column = max(columns.values(), key=len)

        if len(best_row) >= 2 and len(best_row) >= len(best_column):
            return self.extend_horizontally(best_row)
        if len(best_column) >= 2:
            return self.extend_vertically(best_column)
        return self.single_hit_strategy(hits[0])

    def count_space(self, start: Coordinate, dx: int, dy: int) -> int:
        """Contiguous UNKNOWN or HIT cells from ``start`` (exclusive) in one direction."""
        count = 0
        x, y = start.x + dx, start.y + dy
        while 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE:
            if self.board[y, x] not in (CellState.UNKNOWN, CellState.HIT):
                break
            count += 1
            x, y = x + dx, y + dy
        return count

    def can_shoot(self, coord: Coordinate) -> bool:
        return coord.is_valid() and self.board[coord.y, coord.x] == CellState.UNKNOWN
