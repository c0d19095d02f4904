"""Flask application factory for the exposition endpoint."""

import logging

from flask import Flask

from app.config import Settings
from app.container import AppContainer

logger = logging.getLogger(__name__)


class ExporterApp(Flask):
    """Flask application with typed access to the exporter's container."""

    container: AppContainer


def create_app(
    settings: "Settings | None" = None,
    container: "AppContainer | None" = None,
) -> ExporterApp:
    """Create the Flask application serving /metrics and /health.

    Args:
        settings: Exporter settings (loaded from the environment if omitted)
        container: Pre-built container, e.g. one with test overrides

    The heartbeat monitor is not started here; the runner starts it so that
    a failed initial poll never leaves a half-started server behind.
    """
    app = ExporterApp(__name__)

    if settings is None:
        settings = Settings.load()

    settings.validate_config()

    if container is None:
        container = AppContainer()
    container.config.override(settings)

    container.wire(packages=["app.api"])
    app.container = container

    from app.api.health import health_bp
    from app.api.metrics import metrics_bp

    app.register_blueprint(metrics_bp)
    app.register_blueprint(health_bp)

    # Instantiate metric owners so their series exist before the first scrape
    container.metrics_service()
    container.staleness_store()

    logger.debug("Exporter application created")
    return app
