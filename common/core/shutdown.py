"""Graceful shutdown of the exporter on SIGTERM/SIGINT.

Shutdown runs in three phases. ``PREPARE_SHUTDOWN`` flips ``/health`` to
503 and the shutdown gauge to 1. Registered waiters (the heartbeat
monitor's ``stop``) then get what remains of the graceful timeout to
finish a poll in flight. ``SHUTDOWN`` and ``AFTER_SHUTDOWN`` follow, and
the runner returns once the latter has been raised.
"""

import logging
import signal
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class LifetimeEvent(str, Enum):
    """Phases raised, in order, while the exporter shuts down."""

    PREPARE_SHUTDOWN = "prepare-shutdown"
    SHUTDOWN = "shutdown"
    AFTER_SHUTDOWN = "after-shutdown"


class ShutdownCoordinatorProtocol(ABC):
    """What services and endpoints need from the shutdown coordinator."""

    @abstractmethod
    def initialize(self) -> None:
        pass

    @abstractmethod
    def register_lifetime_notification(
        self, callback: Callable[[LifetimeEvent], None]
    ) -> None:
        pass

    @abstractmethod
    def register_shutdown_waiter(
        self, name: str, handler: Callable[[float], bool]
    ) -> None:
        """Register ``handler(remaining_seconds) -> ready`` under ``name``."""
        pass

    @abstractmethod
    def is_shutting_down(self) -> bool:
        pass


def _describe(callback: Callable[..., object]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class ShutdownCoordinator(ShutdownCoordinatorProtocol):
    """Signal-driven shutdown with a shared time budget for waiters."""

    def __init__(self, graceful_shutdown_timeout: float):
        """Initialize shutdown coordinator.

        Args:
            graceful_shutdown_timeout: Seconds all waiters may take together
        """
        self._graceful_shutdown_timeout = graceful_shutdown_timeout
        self._shutting_down = False
        self._lock = threading.RLock()
        self._notifications: list[Callable[[LifetimeEvent], None]] = []
        self._waiters: dict[str, Callable[[float], bool]] = {}

    def initialize(self) -> None:
        """Route SIGTERM and SIGINT to ``shutdown``. Main thread only."""
        for signum in (signal.SIGTERM, signal.SIGINT):
            signal.signal(signum, self._handle_signal)

    def register_lifetime_notification(
        self, callback: Callable[[LifetimeEvent], None]
    ) -> None:
        with self._lock:
            self._notifications.append(callback)
        logger.debug(f"Lifetime notification added: {_describe(callback)}")

    def register_shutdown_waiter(
        self, name: str, handler: Callable[[float], bool]
    ) -> None:
        with self._lock:
            self._waiters[name] = handler
        logger.debug(f"Shutdown waiter added: {name}")

    def is_shutting_down(self) -> bool:
        with self._lock:
            return self._shutting_down

    def _handle_signal(self, signum: int, frame: object) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, stopping exporter")
        self.shutdown()

    def shutdown(self) -> None:
        """Run the shutdown phases once; later calls are ignored."""
        with self._lock:
            if self._shutting_down:
                logger.warning("Exporter is already stopping")
                return
            self._shutting_down = True
            self._raise_lifetime_event(LifetimeEvent.PREPARE_SHUTDOWN)
            waiters = list(self._waiters.items())

        started = time.perf_counter()
        if not self._wait_for(waiters, started):
            logger.error(
                f"Workers not stopped after {time.perf_counter() - started:.1f}s "
                f"of {self._graceful_shutdown_timeout}s, exiting anyway"
            )

        self._raise_lifetime_event(LifetimeEvent.SHUTDOWN)
        logger.info("Exporter stopped")
        self._raise_lifetime_event(LifetimeEvent.AFTER_SHUTDOWN)

    def _wait_for(
        self, waiters: list[tuple[str, Callable[[float], bool]]], started: float
    ) -> bool:
        ready = True
        for name, waiter in waiters:
            remaining = self._graceful_shutdown_timeout - (time.perf_counter() - started)
            if remaining <= 0:
                logger.error(f"No time left to wait for {name}")
                return False

            try:
                if not waiter(remaining):
                    logger.warning(f"{name} did not stop within {remaining:.1f}s")
                    ready = False
            except Exception as e:
                logger.error(f"Shutdown waiter {name} failed: {e}")
                ready = False
        return ready

    def _raise_lifetime_event(self, event: LifetimeEvent) -> None:
        logger.debug(f"Lifetime event: {event.value}")
        for callback in list(self._notifications):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Lifetime notification {_describe(callback)} failed: {e}")
