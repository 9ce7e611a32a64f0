"""Instrumented smart player emitting OpenTelemetry data."""

from __future__ import annotations

import time

from salvo.ai.player import ShotMode, SmartPlayer
from salvo.engine.ship import Coordinate, Direction, ShipPlacement, ShotResult
from salvo.telemetry import get_logger, get_tracer, record_histogram, record_metric


class InstrumentedSmartPlayer(SmartPlayer):
    """SmartPlayer subclass that wraps its decisions with traces/metrics/logging."""

    def __init__(self, *args, name: str = "smart", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.name = name
        self._logger = get_logger("salvo.player")
        self._tracer = get_tracer("salvo.player")

    def place_fleet(self) -> list[ShipPlacement]:
        start = time.perf_counter()
        with self._tracer.start_as_current_span("salvo.player.place_fleet") as span:
            fleet = super().place_fleet()
            duration_ms = (time.perf_counter() - start) * 1000
            horizontal = sum(1 for placement in fleet if placement.direction is Direction.HORIZONTAL)
            span.set_attribute("player", self.name)
            span.set_attribute("candidates", self.placement_strategy.config.candidates)
            span.set_attribute("horizontal_ships", horizontal)
            span.set_attribute("latency_ms", duration_ms)
            record_metric("salvo_player_fleets_total", 1, {"player": self.name})
            record_histogram("salvo_player_place_fleet_latency_ms", duration_ms, {"player": self.name})
            self._logger.info(
                "place_fleet player=%s horizontal=%d latency_ms=%.1f",
                self.name,
                horizontal,
                duration_ms,
            )
            return fleet

    def choose_shot(self) -> tuple[Coordinate, ShotMode]:
        start = time.perf_counter()
        with self._tracer.start_as_current_span("salvo.player.next_shot") as span:
            coord, mode = super().choose_shot()
            duration_ms = (time.perf_counter() - start) * 1000
            span.set_attribute("player", self.name)
            span.set_attribute("mode", mode.value)
            span.set_attribute("shot.x", coord.x)
            span.set_attribute("shot.y", coord.y)
            span.set_attribute("active_hits", len(self.tracking_board.active_hits))
            record_metric("salvo_player_shots_total", 1, {"player": self.name, "mode": mode.value})
            record_histogram(
                "salvo_player_decision_latency_ms", duration_ms, {"player": self.name, "mode": mode.value}
            )
            self._logger.debug(
                "next_shot player=%s mode=%s coord=%s latency_ms=%.2f",
                self.name,
                mode.value,
                coord,
                duration_ms,
            )
            return coord, mode

    def on_own_shot_result(self, position: Coordinate, result: ShotResult) -> None:
        super().on_own_shot_result(position, result)
        if result.is_sunk:
            record_metric(
                "salvo_player_ships_sunk_total",
                1,
                {"player": self.name, "ship_size": result.ship_size or 0},
            )
            self._logger.info(
                "ship_sunk player=%s size=%s remaining=%s",
                self.name,
                result.ship_size,
                self.tracking_board.remaining_ships,
            )
