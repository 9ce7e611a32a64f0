"""Adjudicating board: owns one player's fleet and answers shots against it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from salvo.telemetry import get_meter, get_tracer

from .rules import validate_fleet
from .ship import Coordinate, Ship, ShipPlacement, ShotResult

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.board")
meter = get_meter("salvo.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "salvo_engine_fleet_placements",
    unit="1",
    description="Number of fleet layouts submitted to a board",
)

SHOT_COUNTER = meter.create_counter(
    "salvo_engine_shots",
    unit="1",
    description="Shots received by a board",
)


class PlacementError(ValueError):
    """A submitted fleet layout breaks the placement rules."""


class ShotError(ValueError):
    """A shot was out of bounds or aimed at an already targeted cell."""


@dataclass
class Board:
    """A player's 10x10 board holding the live fleet and the shots received."""

    ships: list[Ship] = field(default_factory=list)
    shots: set[Coordinate] = field(default_factory=set)
    owner: str = "unknown"

    def place_fleet(self, placements: Sequence[ShipPlacement]) -> None:
        """Replace the fleet with ``placements``; raises :class:`PlacementError` if illegal."""
        with tracer.start_as_current_span("board.place_fleet") as span:
            span.set_attribute("board.owner", self.owner)
            span.set_attribute("fleet.size", len(placements))
            ships = [placement.to_ship() for placement in placements]
            if not validate_fleet(ships):
                PLACEMENT_COUNTER.add(1, attributes={"result": "rejected", "owner": self.owner})
                logger.error(
                    "fleet_rejected",
                    extra={"owner": self.owner, "sizes": sorted(ship.size for ship in ships)},
                )
                raise PlacementError(f"Illegal fleet layout submitted by {self.owner}.")

            self.ships = ships
            self.shots.clear()
            PLACEMENT_COUNTER.add(1, attributes={"result": "accepted", "owner": self.owner})
            logger.info("fleet_placed", extra={"owner": self.owner, "ships": len(ships)})

    def receive_shot(self, coord: Coordinate) -> ShotResult:
        """Register a shot at this board and return its outcome."""
        with tracer.start_as_current_span("board.receive_shot") as span:
            span.set_attribute("shot.x", coord.x)
            span.set_attribute("shot.y", coord.y)
            span.set_attribute("board.owner", self.owner)
            if not coord.is_valid():
                logger.error(
                    "shot_out_of_bounds", extra={"x": coord.x, "y": coord.y, "owner": self.owner}
                )
                raise ShotError(f"Shot {coord} is out of bounds.")
            if coord in self.shots:
                logger.error(
                    "shot_duplicate", extra={"x": coord.x, "y": coord.y, "owner": self.owner}
                )
                raise ShotError(f"Cell {coord} has already been targeted.")
            self.shots.add(coord)

            result = ShotResult.miss()
            for ship in self.ships:
                if ship.record_hit(coord):
                    result = ShotResult.sunk(ship.size) if ship.is_sunk() else ShotResult.hit()
                    break

            span.set_attribute("shot.outcome", result.outcome.value)
            SHOT_COUNTER.add(1, attributes={"outcome": result.outcome.value, "owner": self.owner})
            logger.debug(
                "shot_received",
                extra={
                    "x": coord.x,
                    "y": coord.y,
                    "outcome": result.outcome.value,
                    "owner": self.owner,
                },
            )
            return result

    def all_ships_sunk(self) -> bool:
        """Check whether the player has any surviving ships."""
        return all(ship.is_sunk() for ship in self.ships)

    def placements(self) -> list[ShipPlacement]:
        return [ship.to_placement() for ship in self.ships]
