"""Heartbeat monitor polling the membership view into staleness gauges.

The monitor performs one synchronous poll on start so the exporter never
serves an empty view, then keeps polling on a background thread at a
fixed interval. Poll failures are fatal: the initial poll raises to the
caller, and a failure on the background thread stops the loop and is
handed to the ``on_fatal_error`` callback so the process boundary can
terminate. Unexpected errors raised while applying a snapshot are
wrapped in ``MembershipUpdateError`` so they take the same path.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from app.exceptions import MembershipPollError, MembershipUpdateError
from app.schemas.membership import MembershipSnapshot

if TYPE_CHECKING:
    from app.services.membership_client import MembershipClient
    from app.services.staleness_store import StalenessStore
    from common.core.shutdown import ShutdownCoordinatorProtocol

logger = logging.getLogger(__name__)


def compute_staleness(snapshot: MembershipSnapshot, now: int) -> dict[str, int]:
    """Map every member of a snapshot to ``now - last_heartbeat``."""
    return {
        member_id: now - record.last_heartbeat
        for member_id, record in snapshot.members.items()
    }


class HeartbeatMonitor:
    """Drives the poll cadence and writes staleness values to the store."""

    def __init__(
        self,
        client: "MembershipClient",
        store: "StalenessStore",
        shutdown_coordinator: "ShutdownCoordinatorProtocol",
        poll_interval: float = 3.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the monitor.

        Args:
            client: Client fetching membership snapshots
            store: Store receiving the staleness values
            shutdown_coordinator: Coordinator stopping the loop on shutdown
            poll_interval: Seconds between poll cycles
            clock: Wall-clock source returning unix seconds
        """
        self.client = client
        self.store = store
        self.poll_interval = poll_interval
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._fatal_callbacks: list[Callable[[MembershipPollError], None]] = []
        self.fatal_error: MembershipPollError | None = None

        shutdown_coordinator.register_shutdown_waiter(
            "HeartbeatMonitor", self.stop
        )

    def on_fatal_error(self, callback: Callable[[MembershipPollError], None]) -> None:
        """Register a callback invoked when the background loop fails."""
        with self._lock:
            self._fatal_callbacks.append(callback)

    def start(self) -> None:
        """Poll once immediately, then start the background poll loop.

        Raises:
            MembershipPollError: The initial poll failed
        """
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Heartbeat monitor already running")
            return

        self._poll_cycle()

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="HeartbeatMonitor",
        )
        self._thread.start()
        logger.info(
            "Started heartbeat monitor",
            extra={
                "interval_seconds": self.poll_interval,
                "service_address": self.client.service_address,
            },
        )

    def stop(self, timeout: float = 5.0) -> bool:
        """Stop scheduling polls and wait for a cycle in flight to finish.

        Returns:
            True if the loop thread exited within the timeout
        """
        self._stop_event.set()

        thread = self._thread
        if thread is None:
            return True

        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
        if thread.is_alive():
            return False

        self._thread = None
        logger.info("Stopped heartbeat monitor")
        return True

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> dict[str, int]:
        """Fetch one snapshot and write a staleness value for each member.

        The clock is read once, after the response arrives, so every value
        written in this cycle is relative to the same timestamp. Nothing is
        written when the fetch or decode fails.

        Returns:
            The staleness values written, keyed by member id
        """
        snapshot = self.client.fetch_snapshot()
        now = int(self._clock())

        staleness = compute_staleness(snapshot, now)
        for member_id, seconds in staleness.items():
            self.store.set_staleness(member_id, seconds)

        logger.debug(
            "Poll cycle complete",
            extra={"members": len(staleness), "sampled_at": now},
        )
        return staleness

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            logger.debug("Starting poll cycle")
            try:
                self._poll_cycle()
            except MembershipPollError as e:
                self._fail(e)
                return

    def _poll_cycle(self) -> None:
        try:
            self.poll_once()
        except MembershipPollError:
            raise
        except Exception as e:
            raise MembershipUpdateError(self.client.service_address, repr(e)) from e

    def _fail(self, error: MembershipPollError) -> None:
        self.fatal_error = error
        self._stop_event.set()

        with self._lock:
            callbacks = list(self._fatal_callbacks)

        if not callbacks:
            logger.critical(f"Heartbeat monitor stopped: {error}")

        for callback in callbacks:
            callback(error)
