"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean exporter settings with lowercase fields and derived values

Command-line flags (see ``app.cli``) take their defaults from Settings, so
flags override environment variables which override built-in defaults.
"""

import logging
import math
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.exceptions import ConfigurationError

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | float | int) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go-style duration strings such as
    ``500ms``, ``3s`` or ``1m30s``.
    """
    if isinstance(value, int | float):
        return float(value)

    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ConfigurationError(f"Invalid duration: {value!r}")
        return seconds

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if not text or position != len(text):
        raise ConfigurationError(f"Invalid duration: {value!r}")

    return total


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Poller ─────────────────────────────────────────────────────────

    POLL_INTERVAL: str = Field(default="3s")
    POLL_TIMEOUT: str = Field(default="10s")
    SERVICE_ADDRESS: str = Field(default="host.docker.internal:8080")
    VIEW_KEY: str = Field(default="collectors/ring")

    # ── Exposition ─────────────────────────────────────────────────────

    METRICS_HOST: str = Field(default="0.0.0.0")
    METRICS_PORT: int = Field(default=9957)
    METRICS_NAMESPACE: str = Field(default="cortex")
    METRICS_SUBSYSTEM: str = Field(default="memberlist")
    WAITRESS_THREADS: int = Field(default=4)
    ACCESS_LOG: bool = Field(default=False)

    # ── Process ────────────────────────────────────────────────────────

    LOG_LEVEL: str = Field(default="INFO")
    GRACEFUL_SHUTDOWN_TIMEOUT: int = Field(default=10)


class Settings(BaseModel):
    """Exporter settings with lowercase fields and durations in seconds."""

    model_config = ConfigDict(from_attributes=True)

    # ── Poller ─────────────────────────────────────────────────────────

    poll_interval: float = 3.0
    poll_timeout: float | None = 10.0
    service_address: str = "host.docker.internal:8080"
    view_key: str = "collectors/ring"

    # ── Exposition ─────────────────────────────────────────────────────

    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9957
    metrics_namespace: str = "cortex"
    metrics_subsystem: str = "memberlist"
    waitress_threads: int = 4
    access_log: bool = False

    # ── Process ────────────────────────────────────────────────────────

    log_level: str = "INFO"
    graceful_shutdown_timeout: int = 10

    def validate_config(self) -> None:
        errors: list[str] = []

        if self.poll_interval <= 0:
            errors.append("poll interval must be positive")
        if self.poll_timeout is not None and self.poll_timeout <= 0:
            errors.append("poll timeout must be positive (use 0 to disable it)")
        if not self.service_address:
            errors.append("service address must not be empty")
        if not self.view_key:
            errors.append("view key must not be empty")
        if not 0 < self.metrics_port < 65536:
            errors.append(f"metrics port {self.metrics_port} is out of range")
        if not self.metrics_namespace or not self.metrics_subsystem:
            errors.append("metrics namespace and subsystem must not be empty")
        if self.waitress_threads < 1:
            errors.append("waitress threads must be at least 1")
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            errors.append(f"unknown log level {self.log_level!r}")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        poll_timeout: float | None = parse_duration(env.POLL_TIMEOUT)
        if poll_timeout == 0:
            poll_timeout = None

        return cls(
            # Poller
            poll_interval=parse_duration(env.POLL_INTERVAL),
            poll_timeout=poll_timeout,
            service_address=env.SERVICE_ADDRESS,
            view_key=env.VIEW_KEY,

            # Exposition
            metrics_host=env.METRICS_HOST,
            metrics_port=env.METRICS_PORT,
            metrics_namespace=env.METRICS_NAMESPACE,
            metrics_subsystem=env.METRICS_SUBSYSTEM,
            waitress_threads=env.WAITRESS_THREADS,
            access_log=env.ACCESS_LOG,

            # Process
            log_level=env.LOG_LEVEL,
            graceful_shutdown_timeout=env.GRACEFUL_SHUTDOWN_TIMEOUT,
        )
