"""Grid vocabulary and ship model shared by the engine and the AI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

BOARD_SIZE = 10
SHIP_SIZES: tuple[int, ...] = (5, 4, 4, 3, 3, 3, 2, 2, 2, 2)
TOTAL_SHIP_CELLS = sum(SHIP_SIZES)


@dataclass(frozen=True)
class Coordinate:
    """Immutable board coordinate; ``x`` is the column, ``y`` the row."""

    x: int
    y: int

    def is_valid(self) -> bool:
        return 0 <= self.x < BOARD_SIZE and 0 <= self.y < BOARD_SIZE

    def orthogonal_neighbors(self) -> list[Coordinate]:
        """Return the in-bounds 4-connected neighbours (left, right, up, down)."""
        candidates = [
            Coordinate(self.x - 1, self.y),
            Coordinate(self.x + 1, self.y),
            Coordinate(self.x, self.y - 1),
            Coordinate(self.x, self.y + 1),
        ]
        return [coord for coord in candidates if coord.is_valid()]

    def all_neighbors(self) -> list[Coordinate]:
        """Return the in-bounds 8-connected neighbours in row-major order."""
        neighbours: list[Coordinate] = []
        for delta_y in (-1, 0, 1):
            for delta_x in (-1, 0, 1):
                if delta_x == 0 and delta_y == 0:
                    continue
                coord = Coordinate(self.x + delta_x, self.y + delta_y)
                if coord.is_valid():
                    neighbours.append(coord)
        return neighbours

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


class Direction(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class CellState(IntEnum):
    """Knowledge about a single cell of the opponent's board.

    Stored as small integers so a whole knowledge grid fits in a numpy array.
    """

    UNKNOWN = 0
    HIT = 1
    MISS = 2
    SUNK = 3
    BLOCKED = 4


class Outcome(Enum):
    MISS = "miss"
    HIT = "hit"
    SUNK = "sunk"


@dataclass(frozen=True)
class ShotResult:
    """Adjudicated outcome of one shot; ``ship_size`` is set only for SUNK."""

    outcome: Outcome
    ship_size: int | None = None

    @classmethod
    def miss(cls) -> ShotResult:
        return cls(Outcome.MISS)

    @classmethod
    def hit(cls) -> ShotResult:
        return cls(Outcome.HIT)

    @classmethod
    def sunk(cls, ship_size: int) -> ShotResult:
        return cls(Outcome.SUNK, ship_size)

    @property
    def is_miss(self) -> bool:
        return self.outcome is Outcome.MISS

    @property
    def is_sunk(self) -> bool:
        return self.outcome is Outcome.SUNK

    def to_log_string(self) -> str:
        if self.outcome is Outcome.SUNK:
            return f"result=sunk ship-size={self.ship_size}"
        return f"result={self.outcome.value}"


def ship_cells(size: int, anchor: Coordinate, direction: Direction) -> list[Coordinate]:
    """Cells covered by a ship of ``size`` starting at ``anchor``; may run off the board."""
    if direction is Direction.HORIZONTAL:
        return [Coordinate(anchor.x + offset, anchor.y) for offset in range(size)]
    return [Coordinate(anchor.x, anchor.y + offset) for offset in range(size)]


@dataclass(frozen=True)
class ShipPlacement:
    """Intended position of a ship before it becomes a live :class:`Ship`."""

    size: int
    position: Coordinate
    direction: Direction

    def cells(self) -> list[Coordinate]:
        return ship_cells(self.size, self.position, self.direction)

    def to_ship(self) -> Ship:
        return Ship(self.size, self.position, self.direction)


@dataclass
class Ship:
    """Represents a single ship instance on an adjudicating board."""

    size: int
    position: Coordinate
    direction: Direction
    hits: set[Coordinate] = field(init=False)
    _coordinates: tuple[Coordinate, ...] = field(init=False, repr=False)
    _coordinate_set: frozenset[Coordinate] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.hits = set()
        self._coordinates = tuple(ship_cells(self.size, self.position, self.direction))
        self._coordinate_set = frozenset(self._coordinates)

    @property
    def cells(self) -> list[Coordinate]:
        """Return the ordered list of coordinates occupied by this ship."""
        return list(self._coordinates)

    def occupies(self, coord: Coordinate) -> bool:
        return coord in self._coordinate_set

    def record_hit(self, coord: Coordinate) -> bool:
        """Record a hit if the coordinate belongs to this ship."""
        if coord not in self._coordinate_set:
            return False
        self.hits.add(coord)
        return True

    def is_sunk(self) -> bool:
        return len(self.hits) == self.size

    def is_valid(self) -> bool:
        """True when every cell lies inside the board."""
        return all(coord.is_valid() for coord in self._coordinates)

    def orthogonal_neighbors(self) -> set[Coordinate]:
        neighbours: set[Coordinate] = set()
        for cell in self._coordinates:
            neighbours.update(n for n in cell.orthogonal_neighbors() if n not in self._coordinate_set)
        return neighbours

    def to_placement(self) -> ShipPlacement:
        return ShipPlacement(self.size, self.position, self.direction)
