"""Exporter runner wiring the poller, the metrics server and shutdown."""

import logging
import threading

from paste.translogger import TransLogger  # type: ignore[import-untyped]
from waitress import serve

from app import create_app
from app.config import Settings
from common.core.shutdown import LifetimeEvent

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run_exporter(settings: Settings) -> None:
    """Run the exporter until shutdown.

    The initial poll happens before the metrics server starts, so the
    endpoint never serves an empty view. Returns after a graceful shutdown.

    Raises:
        MembershipPollError: A poll failed, either the initial one or one on
            the background loop
    """
    app = create_app(settings)
    container = app.container

    shutdown_coordinator = container.shutdown_coordinator()
    monitor = container.heartbeat_monitor()

    shutdown_coordinator.initialize()

    done = threading.Event()

    def signal_done(lifetime_event: LifetimeEvent) -> None:
        if lifetime_event == LifetimeEvent.AFTER_SHUTDOWN:
            done.set()

    shutdown_coordinator.register_lifetime_notification(signal_done)
    monitor.on_fatal_error(lambda error: done.set())

    monitor.start()

    def runner() -> None:
        wsgi = TransLogger(app, setup_console_handler=False) if settings.access_log else app
        logger.info(
            f"Serving metrics on {settings.metrics_host}:{settings.metrics_port} "
            f"with {settings.waitress_threads} threads"
        )
        serve(
            wsgi,
            host=settings.metrics_host,
            port=settings.metrics_port,
            threads=settings.waitress_threads,
        )

    # Daemon thread so the shutdown coordinator controls exit
    thread = threading.Thread(target=runner, daemon=True, name="MetricsServer")
    thread.start()

    done.wait()

    if monitor.fatal_error is not None:
        raise monitor.fatal_error
