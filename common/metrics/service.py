"""Prometheus metrics service for the exposition endpoint.

The service renders every collector registered on the exporter's
``CollectorRegistry``. The registry is created by the container and handed
to each metric owner, so nothing lands on prometheus_client's global
registry:

    class StalenessStore:
        def __init__(self, registry: CollectorRegistry):
            self.time_behind = Gauge(..., registry=registry)
"""

import logging
import time
from typing import TYPE_CHECKING

from prometheus_client import (
    CollectorRegistry,
    Gauge,
    Histogram,
    generate_latest,
)

from common.core.shutdown import LifetimeEvent

if TYPE_CHECKING:
    from common.core.shutdown import ShutdownCoordinatorProtocol

logger = logging.getLogger(__name__)


class MetricsService:
    """Exposition-side metrics service.

    This service handles:
    - Shutdown state metrics
    - Generating Prometheus metrics text from the injected registry
    """

    def __init__(
        self,
        registry: CollectorRegistry,
        shutdown_coordinator: "ShutdownCoordinatorProtocol",
    ):
        """Initialize metrics service.

        Args:
            registry: Registry holding every exporter metric.
            shutdown_coordinator: Coordinator for graceful shutdown.
        """
        self.registry = registry
        self.shutdown_coordinator = shutdown_coordinator
        self._shutdown_start_time: float | None = None

        self.shutdown_coordinator.register_lifetime_notification(
            self._on_lifetime_event
        )

        self.application_shutting_down = Gauge(
            "application_shutting_down",
            "Whether application is shutting down (1=yes, 0=no)",
            registry=registry,
        )

        self.graceful_shutdown_duration_seconds = Histogram(
            "graceful_shutdown_duration_seconds",
            "Duration of graceful shutdowns",
            registry=registry,
        )

    def get_metrics_text(self, names: list[str] | None = None) -> str:
        """Generate metrics in Prometheus text format.

        Args:
            names: Metric families to include; all of them when omitted.
        """
        registry = self.registry.restricted_registry(names) if names else self.registry
        return generate_latest(registry).decode("utf-8")

    def set_shutdown_state(self, is_shutting_down: bool) -> None:
        """Set the shutdown state metric.

        Args:
            is_shutting_down: Whether the application is shutting down.
        """
        self.application_shutting_down.set(1 if is_shutting_down else 0)
        if is_shutting_down:
            self._shutdown_start_time = time.perf_counter()

    def _on_lifetime_event(self, event: LifetimeEvent) -> None:
        match event:
            case LifetimeEvent.PREPARE_SHUTDOWN:
                self.set_shutdown_state(True)
            case LifetimeEvent.SHUTDOWN:
                self._record_shutdown_duration()

    def _record_shutdown_duration(self) -> None:
        if self._shutdown_start_time is not None:
            duration = time.perf_counter() - self._shutdown_start_time
            self.graceful_shutdown_duration_seconds.observe(duration)
            logger.info(f"Graceful shutdown took {duration:.2f}s")
