"""Operator configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .exceptions import ConfigurationError

DEFAULT_METRICS_PORT = 8080
DEFAULT_RESYNC_INTERVAL_SECONDS = 300
MIN_RESYNC_INTERVAL_SECONDS = 10
DEFAULT_REQUEUE_DELAY_SECONDS = 1.0
DEFAULT_ERROR_BACKOFF_SECONDS = 5.0
DEFAULT_K8S_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_K8S_RATE_LIMIT_PER_SECOND = 10.0
DEFAULT_EVENT_MAX_PASSES = 5

CREDENTIALS_STRATEGIES = ("static", "derived")


def _get_int(key: str, default: int) -> int:
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer: {value}") from e


def _get_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number: {value}") from e


def _get_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes")


def resync_interval_from_env() -> int:
    """Read RESYNC_INTERVAL_SECONDS with the same validation as OperatorConfig.

    The resync timer is registered at import time, before main loads the
    full configuration, so the interval is parsed on its own here.

    Raises:
        ConfigurationError: If the value is not an integer or is below the minimum
    """
    interval = _get_int("RESYNC_INTERVAL_SECONDS", DEFAULT_RESYNC_INTERVAL_SECONDS)
    if interval < MIN_RESYNC_INTERVAL_SECONDS:
        raise ConfigurationError(
            f"RESYNC_INTERVAL_SECONDS must be at least {MIN_RESYNC_INTERVAL_SECONDS}: {interval}"
        )
    return interval


@dataclass(frozen=True)
class OperatorConfig:
    """Operator configuration with validated bounds.

    Invalid values raise ConfigurationError at load time rather than
    failing in the middle of a reconcile.
    """

    log_level: str = "INFO"
    metrics_port: int = DEFAULT_METRICS_PORT
    resync_interval_seconds: int = DEFAULT_RESYNC_INTERVAL_SECONDS
    requeue_delay_seconds: float = DEFAULT_REQUEUE_DELAY_SECONDS
    error_backoff_seconds: float = DEFAULT_ERROR_BACKOFF_SECONDS
    request_timeout_seconds: float | None = DEFAULT_K8S_REQUEST_TIMEOUT_SECONDS
    rate_limit_per_second: float = DEFAULT_K8S_RATE_LIMIT_PER_SECOND
    event_max_passes: int = DEFAULT_EVENT_MAX_PASSES
    credentials_strategy: str = "static"
    credentials_seed: str | None = None
    tracing_enabled: bool = False

    def __post_init__(self) -> None:
        errors = []
        if not 1 <= self.metrics_port <= 65535:
            errors.append(f"METRICS_PORT must be between 1 and 65535: {self.metrics_port}")
        if self.resync_interval_seconds < MIN_RESYNC_INTERVAL_SECONDS:
            errors.append(
                f"RESYNC_INTERVAL_SECONDS must be at least {MIN_RESYNC_INTERVAL_SECONDS}: "
                f"{self.resync_interval_seconds}"
            )
        if self.requeue_delay_seconds < 0:
            errors.append(f"REQUEUE_DELAY_SECONDS must not be negative: {self.requeue_delay_seconds}")
        if self.error_backoff_seconds < 0:
            errors.append(f"ERROR_BACKOFF_SECONDS must not be negative: {self.error_backoff_seconds}")
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            errors.append(
                f"K8S_REQUEST_TIMEOUT_SECONDS must be positive: {self.request_timeout_seconds}"
            )
        if self.rate_limit_per_second <= 0:
            errors.append(f"K8S_RATE_LIMIT_PER_SECOND must be positive: {self.rate_limit_per_second}")
        if self.event_max_passes < 1:
            errors.append(f"EVENT_MAX_PASSES must be at least 1: {self.event_max_passes}")
        if self.credentials_strategy not in CREDENTIALS_STRATEGIES:
            errors.append(
                f"CREDENTIALS_STRATEGY must be one of {list(CREDENTIALS_STRATEGIES)}: "
                f"{self.credentials_strategy}"
            )
        elif self.credentials_strategy == "derived" and not self.credentials_seed:
            errors.append("CREDENTIALS_SEED is required when CREDENTIALS_STRATEGY is derived")

        if errors:
            raise ConfigurationError("; ".join(errors))

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Load configuration from environment variables.

        Environment Variables:
            LOG_LEVEL: Logging level (default: INFO)
            METRICS_PORT: Port for /metrics, /healthz and /readyz (default: 8080)
            RESYNC_INTERVAL_SECONDS: Seconds between periodic re-reconciles (default: 300)
            REQUEUE_DELAY_SECONDS: Delay before the pass following a create (default: 1)
            ERROR_BACKOFF_SECONDS: Delay before retrying a failed pass (default: 5)
            K8S_REQUEST_TIMEOUT_SECONDS: Per-call API timeout, 0 disables (default: 30)
            K8S_RATE_LIMIT_PER_SECOND: Kubernetes API call rate (default: 10)
            EVENT_MAX_PASSES: Passes per child event before deferring to resync (default: 5)
            CREDENTIALS_STRATEGY: "static" or "derived" (default: static)
            CREDENTIALS_SEED: Seed for derived credentials
            OTEL_TRACES_ENABLED: Enable OpenTelemetry tracing (default: false)
        """
        timeout = _get_float("K8S_REQUEST_TIMEOUT_SECONDS", DEFAULT_K8S_REQUEST_TIMEOUT_SECONDS)

        return cls(
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            metrics_port=_get_int("METRICS_PORT", DEFAULT_METRICS_PORT),
            resync_interval_seconds=resync_interval_from_env(),
            requeue_delay_seconds=_get_float("REQUEUE_DELAY_SECONDS", DEFAULT_REQUEUE_DELAY_SECONDS),
            error_backoff_seconds=_get_float("ERROR_BACKOFF_SECONDS", DEFAULT_ERROR_BACKOFF_SECONDS),
            request_timeout_seconds=timeout if timeout != 0 else None,
            rate_limit_per_second=_get_float("K8S_RATE_LIMIT_PER_SECOND", DEFAULT_K8S_RATE_LIMIT_PER_SECOND),
            event_max_passes=_get_int("EVENT_MAX_PASSES", DEFAULT_EVENT_MAX_PASSES),
            credentials_strategy=os.environ.get("CREDENTIALS_STRATEGY", "static"),
            credentials_seed=os.environ.get("CREDENTIALS_SEED") or None,
            tracing_enabled=_get_bool("OTEL_TRACES_ENABLED", False),
        )
