"""Pytest fixtures for exporter tests.

Every test gets its own Prometheus registry through the container, so no
metric state leaks between tests.
"""

from collections.abc import Generator
from typing import Any

import pytest
from flask import Flask
from flask.testing import FlaskClient
from prometheus_client import CollectorRegistry

from app import create_app
from app.config import Settings
from app.container import AppContainer
from app.services.staleness_store import StalenessStore
from tests.testing_utils import StubShutdownCoordinator


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    return Settings(
        poll_interval=0.05,
        poll_timeout=1.0,
        service_address="membership.test:8080",
        view_key="collectors/ring",
        metrics_host="127.0.0.1",
        metrics_port=9957,
        metrics_namespace="cortex",
        metrics_subsystem="memberlist",
        log_level="DEBUG",
        graceful_shutdown_timeout=5,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return _build_test_settings()


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def store(registry: CollectorRegistry) -> StalenessStore:
    return StalenessStore(registry)


@pytest.fixture
def shutdown_coordinator() -> StubShutdownCoordinator:
    return StubShutdownCoordinator()


@pytest.fixture
def container(
    test_settings: Settings, shutdown_coordinator: StubShutdownCoordinator
) -> Generator[AppContainer, None, None]:
    """Container with a stub shutdown coordinator and a fresh registry."""
    container = AppContainer()
    container.config.override(test_settings)
    container.shutdown_coordinator.override(shutdown_coordinator)
    yield container
    container.unwire()


@pytest.fixture
def app(test_settings: Settings, container: AppContainer) -> Flask:
    return create_app(test_settings, container=container)


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def upstream_response() -> Any:
    """Build a fake ``requests`` response for the membership endpoint."""
    from unittest.mock import MagicMock

    def _build(body: bytes | str, status_code: int = 200) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.content = body.encode("utf-8") if isinstance(body, str) else body
        response.__enter__.return_value = response
        return response

    return _build
