"""Tests for the shutdown coordinator."""

import signal
import threading
import time
from unittest.mock import MagicMock, call, patch

from common.core.shutdown import LifetimeEvent, ShutdownCoordinator


class TestShutdownCoordinator:
    """Test shutdown coordinator functionality."""

    def test_lifetime_event_sequence(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=60)
        events_received = []

        coordinator.register_lifetime_notification(events_received.append)
        coordinator._handle_signal(signal.SIGTERM, None)

        assert events_received == [
            LifetimeEvent.PREPARE_SHUTDOWN,
            LifetimeEvent.SHUTDOWN,
            LifetimeEvent.AFTER_SHUTDOWN,
        ]

    def test_multiple_notifications(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=60)
        callback1 = MagicMock()
        callback2 = MagicMock()
        coordinator.register_lifetime_notification(callback1)
        coordinator.register_lifetime_notification(callback2)

        coordinator.shutdown()

        assert callback1.call_count == 3
        assert callback2.call_count == 3
        callback1.assert_any_call(LifetimeEvent.AFTER_SHUTDOWN)

    def test_waiters_run_between_prepare_and_shutdown(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        timeline = []

        coordinator.register_lifetime_notification(lambda event: timeline.append(event))

        def waiter(timeout: float) -> bool:
            timeline.append(("waiter", timeout))
            return True

        coordinator.register_shutdown_waiter("HeartbeatMonitor", waiter)
        coordinator.shutdown()

        assert timeline[0] == LifetimeEvent.PREPARE_SHUTDOWN
        assert timeline[1][0] == "waiter"
        assert 0 < timeline[1][1] <= 5
        assert timeline[2] == LifetimeEvent.SHUTDOWN

    def test_waiters_share_timeout_budget(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        waiter_calls = []

        def slow_waiter(timeout: float) -> bool:
            waiter_calls.append(("slow", timeout))
            time.sleep(0.3)
            return True

        def fast_waiter(timeout: float) -> bool:
            waiter_calls.append(("fast", timeout))
            return True

        coordinator.register_shutdown_waiter("Slow", slow_waiter)
        coordinator.register_shutdown_waiter("Fast", fast_waiter)
        coordinator.shutdown()

        assert [name for name, _ in waiter_calls] == ["slow", "fast"]
        assert waiter_calls[1][1] < waiter_calls[0][1]

    def test_failing_waiter_does_not_block_shutdown(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=5)
        events = []
        coordinator.register_lifetime_notification(events.append)

        def bad_waiter(timeout: float) -> bool:
            raise RuntimeError("stuck")

        coordinator.register_shutdown_waiter("Bad", bad_waiter)
        coordinator.register_shutdown_waiter("NotReady", lambda timeout: False)
        coordinator.shutdown()

        assert events[-1] == LifetimeEvent.AFTER_SHUTDOWN

    def test_is_shutting_down_state(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=60)
        assert not coordinator.is_shutting_down()

        states = []
        coordinator.register_lifetime_notification(
            lambda event: states.append(coordinator.is_shutting_down())
        )

        thread = threading.Thread(target=coordinator.shutdown)
        thread.start()
        thread.join(timeout=5)

        assert states == [True, True, True]

    def test_second_shutdown_is_ignored(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=60)
        callback = MagicMock()
        coordinator.register_lifetime_notification(callback)

        coordinator.shutdown()
        coordinator.shutdown()

        assert callback.call_count == 3

    def test_notification_exception_handling(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=60)
        received = []

        def bad_callback(event: LifetimeEvent):
            raise Exception("Test error")

        coordinator.register_lifetime_notification(bad_callback)
        coordinator.register_lifetime_notification(received.append)

        coordinator.shutdown()

        assert len(received) == 3

    def test_initialize_installs_signal_handlers(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=60)

        with patch("common.core.shutdown.signal.signal") as mock_signal:
            coordinator.initialize()

        mock_signal.assert_has_calls(
            [
                call(signal.SIGTERM, coordinator._handle_signal),
                call(signal.SIGINT, coordinator._handle_signal),
            ]
        )

    def test_exhausted_budget_skips_remaining_waiters(self):
        coordinator = ShutdownCoordinator(graceful_shutdown_timeout=0.1)
        events = []
        coordinator.register_lifetime_notification(events.append)
        skipped = MagicMock(return_value=True)

        def slow_waiter(timeout: float) -> bool:
            time.sleep(0.2)
            return True

        coordinator.register_shutdown_waiter("Slow", slow_waiter)
        coordinator.register_shutdown_waiter("Skipped", skipped)
        coordinator.shutdown()

        skipped.assert_not_called()
        assert events[-1] == LifetimeEvent.AFTER_SHUTDOWN
