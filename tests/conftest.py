"""Shared fixtures."""

from __future__ import annotations

import pytest
from salvo.ai.placement import PlacementConfig
from salvo.engine.ship import Coordinate, Direction, ShipPlacement


@pytest.fixture
def fast_placement() -> PlacementConfig:
    """Fewer scored candidates so whole games stay quick."""
    return PlacementConfig(candidates=40)


@pytest.fixture
def legal_fleet() -> list[ShipPlacement]:
    h = Direction.HORIZONTAL
    return [
        ShipPlacement(5, Coordinate(0, 0), h),
        ShipPlacement(4, Coordinate(6, 0), h),
        ShipPlacement(4, Coordinate(0, 2), h),
        ShipPlacement(3, Coordinate(5, 2), h),
        ShipPlacement(3, Coordinate(0, 4), h),
        ShipPlacement(3, Coordinate(4, 4), h),
        ShipPlacement(2, Coordinate(8, 4), h),
        ShipPlacement(2, Coordinate(0, 6), h),
        ShipPlacement(2, Coordinate(3, 6), h),
        ShipPlacement(2, Coordinate(6, 6), h),
    ]
