"""Command-line entry point for the memberlist heartbeat exporter."""

import argparse
import logging
import sys
from typing import NoReturn

from pydantic import ValidationError

from app.config import Settings, parse_duration
from app.exceptions import ConfigurationError, MembershipPollError
from app.runner import configure_logging, run_exporter

logger = logging.getLogger(__name__)


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def create_parser(defaults: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export memberlist heartbeat staleness as Prometheus metrics",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--interval",
        type=_duration,
        default=defaults.poll_interval,
        help="poll interval for querying the service (e.g. 3s, 500ms)",
    )
    parser.add_argument(
        "--service-address",
        default=defaults.service_address,
        help="membership service address",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=defaults.metrics_port,
        help="port to serve metrics",
    )
    parser.add_argument(
        "--view-key",
        default=defaults.view_key,
        help="membership view key",
    )
    parser.add_argument(
        "--poll-timeout",
        type=_duration,
        default=defaults.poll_timeout or 0.0,
        help="timeout for each membership request, 0 to disable",
    )
    parser.add_argument(
        "--metrics-namespace",
        default=defaults.metrics_namespace,
        help="namespace of the exported gauge",
    )
    parser.add_argument(
        "--metrics-subsystem",
        default=defaults.metrics_subsystem,
        help="subsystem of the exported gauge",
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        help="logging level",
    )

    return parser


def settings_from_args(defaults: Settings, args: argparse.Namespace) -> Settings:
    """Apply parsed flags on top of the environment-derived settings."""
    return defaults.model_copy(
        update={
            "poll_interval": args.interval,
            "poll_timeout": args.poll_timeout or None,
            "service_address": args.service_address,
            "metrics_port": args.metrics_port,
            "view_key": args.view_key,
            "metrics_namespace": args.metrics_namespace,
            "metrics_subsystem": args.metrics_subsystem,
            "log_level": args.log_level,
        }
    )


def main(argv: list[str] | None = None) -> NoReturn:
    try:
        defaults = Settings.load()
    except (ConfigurationError, ValidationError) as e:
        print(f"Invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(2)

    parser = create_parser(defaults)
    args = parser.parse_args(argv)

    settings = settings_from_args(defaults, args)
    try:
        settings.validate_config()
    except ConfigurationError as e:
        parser.error(str(e))

    configure_logging(settings.log_level)

    try:
        run_exporter(settings)
    except MembershipPollError as e:
        logger.critical(f"Fatal poll failure: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
