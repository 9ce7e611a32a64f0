"""Telemetry configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}

# field -> env names, first one set wins
_FLAG_ENV = {
    "enable_tracing": ("SALVO_ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
    "enable_metrics": ("SALVO_ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
    "enable_logging": ("SALVO_ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
}

# field -> (signal-specific env name, path appended to OTEL_EXPORTER_OTLP_ENDPOINT)
_ENDPOINT_ENV = {
    "otlp_traces_endpoint": ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "v1/traces"),
    "otlp_metrics_endpoint": ("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", "v1/metrics"),
    "otlp_logs_endpoint": ("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", "v1/logs"),
}

_ENABLED_BY_ENDPOINT = {
    "otlp_traces_endpoint": "enable_tracing",
    "otlp_metrics_endpoint": "enable_metrics",
    "otlp_logs_endpoint": "enable_logging",
}


def _env_flag(*names: str) -> bool | None:
    for name in names:
        value = os.getenv(name)
        if value is not None:
            return value.strip().lower() in _TRUTHY
    return None


def _env_endpoint(specific: str, suffix: str) -> str | None:
    value = os.getenv(specific)
    if value:
        return value
    base = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if base:
        return f"{base.rstrip('/')}/{suffix}"
    return None


def _parse_resource_attributes(raw: str) -> dict[str, str]:
    """``key=value`` pairs separated by commas; malformed pairs are skipped."""
    attrs: dict[str, str] = {}
    for part in raw.split(","):
        key, sep, value = part.partition("=")
        if sep:
            attrs[key.strip()] = value.strip()
    return attrs


class TelemetryConfig(BaseModel):
    """Runtime configuration for logging and the OpenTelemetry exporters."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    log_level: str = "INFO"
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "salvo"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelemetryConfig":
        """Construct config from env vars (`SALVO_*` + `OTEL_*`); ``overrides`` win."""
        data: dict[str, Any] = {}

        for field, names in _FLAG_ENV.items():
            flag = _env_flag(*names)
            if flag is not None:
                data[field] = flag

        for field, (specific, suffix) in _ENDPOINT_ENV.items():
            endpoint = _env_endpoint(specific, suffix)
            if endpoint:
                data[field] = endpoint

        log_level = os.getenv("SALVO_LOG_LEVEL")
        if log_level:
            data["log_level"] = log_level.strip().upper()
        if os.getenv("OTEL_SERVICE_NAME"):
            data["service_name"] = os.environ["OTEL_SERVICE_NAME"]
        if os.getenv("OTEL_SERVICE_NAMESPACE"):
            data["service_namespace"] = os.environ["OTEL_SERVICE_NAMESPACE"]
        if os.getenv("OTEL_RESOURCE_ATTRIBUTES"):
            data["resource_attributes"] = _parse_resource_attributes(os.environ["OTEL_RESOURCE_ATTRIBUTES"])

        data.update(overrides)

        # A configured endpoint switches its exporter on.
        for endpoint_field, flag_field in _ENABLED_BY_ENDPOINT.items():
            if data.get(endpoint_field):
                data[flag_field] = True

        return cls(**data)

    def resource_dict(self) -> dict[str, str]:
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""

    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Configure console logging and whichever exporters the config enables."""

    from .logger import init_logging
    from .metrics import init_metrics
    from .tracer import init_tracing

    resolved = config or load_telemetry_config()

    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    init_logging(resolved)
    return resolved
