"""Liveness endpoint for the process supervisor."""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, jsonify

from common.core.shutdown import ShutdownCoordinatorProtocol

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
@inject
def get_health(
    shutdown_coordinator: ShutdownCoordinatorProtocol = Provide["shutdown_coordinator"],
) -> Any:
    if shutdown_coordinator.is_shutting_down():
        return jsonify({"status": "shutting-down"}), 503

    return jsonify({"status": "ok"}), 200
