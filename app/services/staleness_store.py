"""Per-member staleness gauges."""

import logging

from prometheus_client import CollectorRegistry, Gauge

logger = logging.getLogger(__name__)


class StalenessStore:
    """Labeled gauge holding how far behind each member's heartbeat is.

    A label is created the first time a member is written and is only ever
    overwritten afterwards. Members that leave the membership view keep
    their last value; labels are never removed.

    The poll loop is the single writer. prometheus_client guards each child
    value with its own lock, so scrapes running concurrently on the
    exposition threads always see a whole value per member.
    """

    def __init__(
        self,
        registry: CollectorRegistry,
        namespace: str = "cortex",
        subsystem: str = "memberlist",
    ):
        self.time_behind = Gauge(
            "time_behind",
            f"How far behind {namespace} {subsystem} members are",
            ["member"],
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self._registry = registry
        self._metric_name = f"{namespace}_{subsystem}_time_behind"

    def set_staleness(self, member_id: str, seconds: float) -> None:
        """Upsert the staleness value for one member."""
        self.time_behind.labels(member=member_id).set(seconds)

    def get_staleness(self, member_id: str) -> float | None:
        """Return the current value for a member, or None if never written."""
        return self._registry.get_sample_value(
            self._metric_name, {"member": member_id}
        )

    def members(self) -> list[str]:
        """Return every member label created so far."""
        return sorted(
            sample.labels["member"]
            for metric in self.time_behind.collect()
            for sample in metric.samples
        )
