"""Instrumented game engine with telemetry hooks."""

from __future__ import annotations

import time

from salvo.engine.board import PlacementError
from salvo.engine.game import GameEngine, GameResult, Seat
from salvo.engine.ship import Coordinate, ShotResult
from salvo.telemetry import get_logger, get_tracer, record_histogram, record_metric


class InstrumentedGameEngine(GameEngine):
    """Wraps GameEngine with a span per game, per-turn metrics and a completion record."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("salvo.engine")
        self._tracer = get_tracer("salvo.engine")
        self._game_start_time: float | None = None

    def play_game(self) -> GameResult:
        self._game_start_time = time.perf_counter()
        with self._tracer.start_as_current_span("salvo.engine.game") as span:
            try:
                result = super().play_game()
            except PlacementError as exc:
                record_metric("salvo_game_aborted_total", 1, {"reason": "invalid_fleet"})
                span.record_exception(exc)
                span.set_attribute("error", True)
                self._logger.error("Game aborted: %s", exc)
                raise
            duration = time.perf_counter() - self._game_start_time
            span.set_attribute("winner", result.winner)
            span.set_attribute("player1_shots", result.player1_shots)
            span.set_attribute("player2_shots", result.player2_shots)
            span.set_attribute("duration_ms", duration * 1000)

        record_metric("salvo_game_completed_total", 1, {"winner": result.winner})
        record_histogram("salvo_game_duration_ms", duration * 1000, {"winner": result.winner})
        self._logger.info(
            "Game finished. Winner=%d shots=%d/%d duration_s=%.3f",
            result.winner,
            result.player1_shots,
            result.player2_shots,
            duration,
        )
        return result

    def play_turn(self, seat: Seat) -> tuple[Coordinate, ShotResult]:
        with self._tracer.start_as_current_span("salvo.engine.play_turn") as span:
            shot, result = super().play_turn(seat)
            span.set_attribute("player", seat.value)
            span.set_attribute("outcome", result.outcome.value)
            record_metric("salvo_shots_total", 1, {"player": seat.value})
            record_metric(
                "salvo_shots_by_result_total",
                1,
                {"player": seat.value, "result": result.outcome.value},
            )
            return shot, result
