"""Exporter dependency injection container."""

from dependency_injector import containers, providers
from prometheus_client import CollectorRegistry

from app.config import Settings
from app.services.heartbeat_monitor import HeartbeatMonitor
from app.services.membership_client import MembershipClient
from app.services.staleness_store import StalenessStore
from common.core.shutdown import ShutdownCoordinator
from common.metrics.service import MetricsService


class AppContainer(containers.DeclarativeContainer):
    """Exporter service container.

    The config dependency must be provided before any service is resolved:

        container = AppContainer()
        container.config.override(settings)
    """

    config = providers.Dependency(instance_of=Settings)

    # Registry shared by the metric owners and the exposition endpoint
    metrics_registry = providers.Singleton(CollectorRegistry)

    shutdown_coordinator = providers.Singleton(
        ShutdownCoordinator,
        graceful_shutdown_timeout=config.provided.graceful_shutdown_timeout,
    )

    metrics_service = providers.Singleton(
        MetricsService,
        registry=metrics_registry,
        shutdown_coordinator=shutdown_coordinator,
    )

    staleness_store = providers.Singleton(
        StalenessStore,
        registry=metrics_registry,
        namespace=config.provided.metrics_namespace,
        subsystem=config.provided.metrics_subsystem,
    )

    membership_client = providers.Singleton(
        MembershipClient,
        service_address=config.provided.service_address,
        view_key=config.provided.view_key,
        http_timeout=config.provided.poll_timeout,
    )

    heartbeat_monitor = providers.Singleton(
        HeartbeatMonitor,
        client=membership_client,
        store=staleness_store,
        shutdown_coordinator=shutdown_coordinator,
        poll_interval=config.provided.poll_interval,
    )
