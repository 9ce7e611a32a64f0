"""Tests for the opponent knowledge board."""

from __future__ import annotations

import logging

import pytest
from salvo.ai.tracking import TrackingBoard
from salvo.engine.ship import SHIP_SIZES, TOTAL_SHIP_CELLS, CellState, Coordinate, ShotResult


def _hits(board: TrackingBoard, *cells: tuple[int, int]) -> None:
    for x, y in cells:
        board.record_shot(Coordinate(x, y), ShotResult.hit())


def test_miss_and_hit_are_recorded() -> None:
    board = TrackingBoard()
    board.record_shot(Coordinate(1, 1), ShotResult.miss())
    board.record_shot(Coordinate(4, 4), ShotResult.hit())

    assert board.cell(Coordinate(1, 1)) is CellState.MISS
    assert board.cell(Coordinate(4, 4)) is CellState.HIT
    assert board.active_hits == [Coordinate(4, 4)]
    assert board.remaining_ships == list(SHIP_SIZES)


def test_sunk_ship_is_marked_and_surrounded() -> None:
    board = TrackingBoard()
    _hits(board, (2, 3), (3, 3))
    board.record_shot(Coordinate(4, 3), ShotResult.sunk(3))

    for x in (2, 3, 4):
        assert board.cell(Coordinate(x, 3)) is CellState.SUNK
    for coord in (Coordinate(1, 3), Coordinate(5, 3), Coordinate(3, 2), Coordinate(3, 4)):
        assert board.cell(coord) is CellState.BLOCKED
    assert board.cell(Coordinate(1, 2)) is CellState.UNKNOWN
    assert board.active_hits == []
    assert sorted(board.remaining_ships, reverse=True) == [5, 4, 4, 3, 3, 2, 2, 2, 2]


def test_blocking_does_not_overwrite_known_cells() -> None:
    board = TrackingBoard()
    board.record_shot(Coordinate(0, 1), ShotResult.miss())
    _hits(board, (0, 0))
    board.record_shot(Coordinate(1, 0), ShotResult.sunk(2))

    assert board.cell(Coordinate(0, 1)) is CellState.MISS
    assert board.cell(Coordinate(1, 1)) is CellState.BLOCKED
    assert board.cell(Coordinate(2, 0)) is CellState.BLOCKED


def test_remaining_ship_cells_plus_sunk_cells_is_constant() -> None:
    board = TrackingBoard()
    _hits(board, (0, 0))
    board.record_shot(Coordinate(0, 1), ShotResult.sunk(2))
    _hits(board, (5, 5), (6, 5), (7, 5))
    board.record_shot(Coordinate(8, 5), ShotResult.sunk(4))

    sunk_cells = int((board.state == CellState.SUNK).sum())
    assert sum(board.remaining_ships) + sunk_cells == TOTAL_SHIP_CELLS


def test_reconstruction_prefers_the_row_through_the_last_hit() -> None:
    board = TrackingBoard()
    _hits(board, (3, 3), (4, 3), (4, 4))
    board.record_shot(Coordinate(5, 3), ShotResult.sunk(3))

    for x in (3, 4, 5):
        assert board.cell(Coordinate(x, 3)) is CellState.SUNK
    assert board.cell(Coordinate(4, 4)) is CellState.HIT
    assert board.active_hits == [Coordinate(4, 4)]


def test_reconstruction_uses_the_column_when_the_row_is_too_short() -> None:
    board = TrackingBoard()
    _hits(board, (4, 2), (4, 3), (5, 3))
    board.record_shot(Coordinate(4, 4), ShotResult.sunk(3))

    for y in (2, 3, 4):
        assert board.cell(Coordinate(4, y)) is CellState.SUNK
    assert board.active_hits == [Coordinate(5, 3)]


def test_reconstruction_falls_back_to_discovery_order() -> None:
    board = TrackingBoard()
    _hits(board, (3, 3), (4, 3), (4, 4))
    board.record_shot(Coordinate(5, 4), ShotResult.sunk(3))

    for coord in (Coordinate(5, 4), Coordinate(4, 4), Coordinate(4, 3)):
        assert board.cell(coord) is CellState.SUNK
    assert board.cell(Coordinate(3, 3)) is CellState.HIT
    assert board.active_hits == [Coordinate(3, 3)]


def test_unknown_sunk_size_is_ignored_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    board = TrackingBoard()
    with caplog.at_level(logging.WARNING, logger="salvo.ai.tracking"):
        board.record_shot(Coordinate(2, 2), ShotResult.sunk(7))

    assert "sunk_size_not_remaining" in caplog.text
    assert board.remaining_ships == list(SHIP_SIZES)
    assert board.cell(Coordinate(2, 2)) is CellState.SUNK


def test_minimum_ship_size_from_collinear_hits() -> None:
    board = TrackingBoard()
    assert board.infer_minimum_ship_size() == 1

    _hits(board, (2, 3), (3, 3), (4, 3))
    assert board.infer_minimum_ship_size() == 4
    assert board.filtered_remaining_ships() == [5, 4, 4]


def test_minimum_ship_size_with_scattered_hits() -> None:
    board = TrackingBoard()
    _hits(board, (2, 2), (5, 5))
    assert board.infer_minimum_ship_size() == 2


def test_returned_collections_are_copies() -> None:
    board = TrackingBoard()
    _hits(board, (1, 1))
    board.active_hits.clear()
    board.remaining_ships.clear()
    assert board.active_hits == [Coordinate(1, 1)]
    assert len(board.remaining_ships) == len(SHIP_SIZES)


def test_is_unknown_and_reset() -> None:
    board = TrackingBoard()
    board.record_shot(Coordinate(0, 0), ShotResult.miss())
    assert not board.is_unknown(Coordinate(0, 0))
    assert not board.is_unknown(Coordinate(-1, 0))
    assert not hasattr(board, "can_shoot")
    assert board.is_unknown(Coordinate(1, 0))

    _hits(board, (5, 5))
    board.record_shot(Coordinate(5, 6), ShotResult.sunk(2))
    board.reset()

    assert (board.state == CellState.UNKNOWN).all()
    assert board.active_hits == []
    assert board.remaining_ships == list(SHIP_SIZES)
    assert board.has_unknown_cells()
