"""Prometheus exposition endpoint."""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, Response, request

from common.metrics.service import MetricsService

metrics_bp = Blueprint("metrics", __name__, url_prefix="/metrics")

EXPOSITION_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@metrics_bp.route("", methods=["GET"])
@inject
def get_metrics(
    metrics_service: MetricsService = Provide["metrics_service"],
) -> Any:
    """Return the current gauge values in Prometheus text format.

    Repeated ``name[]`` query parameters restrict the output to the named
    metric families, as the prometheus_client exposition handler does.
    Values are read straight from the registry and never wait on the poller.
    """
    names = request.args.getlist("name[]")
    metrics_text = metrics_service.get_metrics_text(names or None)

    response = Response(metrics_text, content_type=EXPOSITION_CONTENT_TYPE)
    response.headers["Cache-Control"] = "no-store"
    return response
