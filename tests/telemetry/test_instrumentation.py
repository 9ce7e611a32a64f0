"""Telemetry instrumentation unit tests."""

from __future__ import annotations

import logging
import random
from unittest.mock import MagicMock

import pytest
from salvo.ai.instrumented_player import InstrumentedSmartPlayer
from salvo.ai.placement import PlacementConfig
from salvo.ai.player import RandomPlayer, SmartPlayer
from salvo.engine.board import PlacementError
from salvo.engine.instrumented_game import InstrumentedGameEngine
from salvo.engine.ship import Coordinate, ShotResult
from salvo.telemetry import config as telemetry_config_module
from salvo.telemetry import logger as logger_module
from salvo.telemetry import metrics as metrics_module
from salvo.telemetry import tracer as tracer_module
from salvo.telemetry.config import TelemetryConfig

FAST = PlacementConfig(candidates=20)

ENV_VARS = (
    "SALVO_ENABLE_TRACING",
    "SALVO_ENABLE_METRICS",
    "SALVO_ENABLE_LOGGING",
    "SALVO_LOG_LEVEL",
    "OTEL_TRACES_ENABLED",
    "OTEL_METRICS_ENABLED",
    "OTEL_LOGS_ENABLED",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
    "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT",
    "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
    "OTEL_SERVICE_NAME",
    "OTEL_SERVICE_NAMESPACE",
    "OTEL_RESOURCE_ATTRIBUTES",
)


class DummySpan:
    def __init__(self, names: list[str], span_name: str) -> None:
        self._names = names
        self._names.append(span_name)
        self.exceptions: list[BaseException] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, *_):
        pass

    def record_exception(self, exc):
        self.exceptions.append(exc)


class DummyTracer:
    def __init__(self) -> None:
        self.span_names: list[str] = []

    def start_as_current_span(self, name: str):
        return DummySpan(self.span_names, name)


def reset_singletons() -> None:
    tracer_module._TRACER = None
    tracer_module._TRACER_PROVIDER = None
    metrics_module._METER = None
    metrics_module._METER_PROVIDER = None
    metrics_module._COUNTERS = {}
    metrics_module._HISTOGRAMS = {}


@pytest.fixture(autouse=True)
def clean_telemetry(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_singletons()
    yield
    reset_singletons()


def test_lazy_init_tracer(monkeypatch: pytest.MonkeyPatch) -> None:
    assert tracer_module.get_tracer() is tracer_module.get_tracer()

    provider_instance = MagicMock()
    provider_instance.get_tracer.return_value = MagicMock()
    monkeypatch.setattr(tracer_module, "TracerProvider", MagicMock(return_value=provider_instance))
    monkeypatch.setattr(tracer_module, "OTLPSpanExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(tracer_module, "BatchSpanProcessor", MagicMock())
    monkeypatch.setattr(tracer_module.trace, "set_tracer_provider", MagicMock())
    tracer_module.init_tracing(
        TelemetryConfig(enable_tracing=True, otlp_traces_endpoint="http://example")
    )
    assert tracer_module._TRACER is provider_instance.get_tracer.return_value

    meter_provider = MagicMock()
    meter_provider.get_meter.return_value = MagicMock()
    monkeypatch.setattr(metrics_module, "MeterProvider", MagicMock(return_value=meter_provider))
    monkeypatch.setattr(metrics_module, "OTLPMetricExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(metrics_module, "PeriodicExportingMetricReader", MagicMock())
    monkeypatch.setattr(metrics_module.otel_metrics, "set_meter_provider", MagicMock())
    metrics_module.init_metrics(
        TelemetryConfig(enable_metrics=True, otlp_metrics_endpoint="http://example")
    )
    assert metrics_module._METER is meter_provider.get_meter.return_value


def test_record_metric_reuses_instruments() -> None:
    meter = MagicMock()
    metrics_module._METER = meter

    metrics_module.record_metric("salvo_test_total", 1, {"a": 1})
    metrics_module.record_metric("salvo_test_total", 2)
    metrics_module.record_histogram("salvo_test_ms", 3.5)

    meter.create_counter.assert_called_once_with("salvo_test_total")
    counter = meter.create_counter.return_value
    assert counter.add.call_count == 2
    meter.create_histogram.return_value.record.assert_called_once_with(3.5, attributes={})


def test_logging_init_without_export() -> None:
    root = logging.getLogger()
    level = root.level
    try:
        logger = logger_module.init_logging(TelemetryConfig(log_level="WARNING"))
        assert logger is logger_module.get_logger("salvo")
        assert root.level == logging.WARNING
    finally:
        root.setLevel(level)


def test_init_telemetry_logging_only(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))

    telemetry_config_module.init_telemetry(TelemetryConfig())
    assert calls == ["lo"]


def test_init_telemetry_respects_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))

    config = TelemetryConfig(enable_tracing=True, enable_metrics=True)
    telemetry_config_module.init_telemetry(config)
    assert calls == ["tr", "me", "lo"]


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317/")
    monkeypatch.setenv("SALVO_LOG_LEVEL", "debug")
    monkeypatch.setenv("OTEL_RESOURCE_ATTRIBUTES", "deployment.environment=test, team=games")

    config = TelemetryConfig.from_env()

    assert config.otlp_traces_endpoint == "http://collector:4317/v1/traces"
    assert config.otlp_metrics_endpoint == "http://collector:4317/v1/metrics"
    assert config.enable_tracing and config.enable_metrics and config.enable_logging
    assert config.log_level == "DEBUG"
    assert config.resource_dict() == {
        "service.name": "salvo",
        "service.namespace": "game",
        "deployment.environment": "test",
        "team": "games",
    }


def test_config_flags_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SALVO_ENABLE_TRACING", "yes")
    monkeypatch.setenv("OTEL_METRICS_ENABLED", "false")

    config = TelemetryConfig.from_env(service_name="salvo-bench")
    assert config.enable_tracing
    assert not config.enable_metrics
    assert not config.enable_logging
    assert config.service_name == "salvo-bench"


def test_load_telemetry_config_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    telemetry_config_module.load_telemetry_config.cache_clear()
    calls = {"count": 0}

    def fake_from_env(**overrides):
        calls["count"] += 1
        return TelemetryConfig(enable_tracing=True)

    monkeypatch.setattr(
        telemetry_config_module.TelemetryConfig,
        "from_env",
        classmethod(lambda cls, **overrides: fake_from_env(**overrides)),
    )

    first = telemetry_config_module.load_telemetry_config()
    second = telemetry_config_module.load_telemetry_config()
    assert first is second
    assert calls["count"] == 1
    telemetry_config_module.load_telemetry_config.cache_clear()


def _patch_engine(monkeypatch: pytest.MonkeyPatch, tracer: DummyTracer, metrics: list[str]) -> None:
    monkeypatch.setattr("salvo.engine.instrumented_game.get_tracer", lambda *_: tracer)
    monkeypatch.setattr("salvo.engine.instrumented_game.get_logger", lambda *_: MagicMock())
    monkeypatch.setattr(
        "salvo.engine.instrumented_game.record_metric",
        lambda name, value, attrs=None: metrics.append(name),
    )
    monkeypatch.setattr(
        "salvo.engine.instrumented_game.record_histogram",
        lambda name, value, attrs=None: metrics.append(name),
    )


def test_instrumented_game_emits_spans(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    metrics: list[str] = []
    _patch_engine(monkeypatch, tracer, metrics)

    engine = InstrumentedGameEngine(
        SmartPlayer(rng=random.Random(1), placement_config=FAST),
        SmartPlayer(rng=random.Random(2), placement_config=FAST),
    )
    result = engine.play_game()

    assert tracer.span_names[0] == "salvo.engine.game"
    turns = tracer.span_names.count("salvo.engine.play_turn")
    assert turns == result.player1_shots + result.player2_shots
    assert metrics.count("salvo_shots_total") == turns
    assert metrics.count("salvo_shots_by_result_total") == turns
    assert "salvo_game_completed_total" in metrics
    assert "salvo_game_duration_ms" in metrics


def test_instrumented_game_records_abort(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    metrics: list[str] = []
    _patch_engine(monkeypatch, tracer, metrics)

    class BrokenFleetPlayer(RandomPlayer):
        def place_fleet(self):
            return []

    engine = InstrumentedGameEngine(
        SmartPlayer(rng=random.Random(3), placement_config=FAST),
        BrokenFleetPlayer(rng=random.Random(4)),
    )
    with pytest.raises(PlacementError):
        engine.play_game()
    assert metrics == ["salvo_game_aborted_total"]


def test_instrumented_player_records_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    metric_calls: list[str] = []

    monkeypatch.setattr("salvo.ai.instrumented_player.get_tracer", lambda *_: tracer)
    monkeypatch.setattr("salvo.ai.instrumented_player.get_logger", lambda *_: MagicMock())
    monkeypatch.setattr(
        "salvo.ai.instrumented_player.record_metric",
        lambda name, value, attrs=None: metric_calls.append(name),
    )
    monkeypatch.setattr(
        "salvo.ai.instrumented_player.record_histogram",
        lambda name, value, attrs=None: metric_calls.append(name),
    )

    player = InstrumentedSmartPlayer(rng=random.Random(5), placement_config=FAST, name="p1")
    player.place_fleet()
    assert "salvo.player.place_fleet" in tracer.span_names
    assert "salvo_player_fleets_total" in metric_calls
    assert "salvo_player_place_fleet_latency_ms" in metric_calls

    shot = player.next_shot()
    assert shot.is_valid()
    assert "salvo.player.next_shot" in tracer.span_names
    assert "salvo_player_shots_total" in metric_calls
    assert "salvo_player_decision_latency_ms" in metric_calls

    metric_calls.clear()
    player.on_own_shot_result(Coordinate(0, 0), ShotResult.hit())
    assert metric_calls == []
    player.on_own_shot_result(Coordinate(1, 0), ShotResult.sunk(2))
    assert metric_calls == ["salvo_player_ships_sunk_total"]
