"""Prometheus metrics module.

Metric owners register their collectors on the registry they are given:

    from prometheus_client import Gauge

    class MyService:
        def __init__(self, registry):
            self.my_gauge = Gauge('my_gauge', 'Description', registry=registry)

All collectors on that registry are included in the /metrics output.
"""

from common.metrics.service import MetricsService

__all__ = [
    "MetricsService",
]
