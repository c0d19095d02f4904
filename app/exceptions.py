"""Exceptions raised by the exporter with operator-ready messages."""


class ConfigurationError(Exception):
    """Raised when exporter configuration is invalid."""

    pass


class MembershipPollError(Exception):
    """Base exception for a failed membership poll.

    A poll failure is unrecoverable: it propagates to the top-level
    boundary in ``app.cli`` which terminates the process.
    """

    def __init__(self, message: str, service_address: str) -> None:
        self.message = message
        self.service_address = service_address
        super().__init__(message)


class MembershipFetchError(MembershipPollError):
    """Raised when the membership service cannot be reached."""

    def __init__(self, service_address: str, cause: str) -> None:
        super().__init__(
            f"failed getting response from {service_address}: {cause}",
            service_address,
        )


class MembershipReadError(MembershipPollError):
    """Raised when the response body cannot be read."""

    def __init__(self, service_address: str, cause: str) -> None:
        super().__init__(
            f"failed reading response from {service_address}: {cause}",
            service_address,
        )


class MembershipDecodeError(MembershipPollError):
    """Raised when the response body is not a valid membership document."""

    def __init__(self, service_address: str, cause: str) -> None:
        super().__init__(
            f"failed decoding response from {service_address}: {cause}",
            service_address,
        )


class MembershipUpdateError(MembershipPollError):
    """Raised when a decoded snapshot cannot be applied to the gauges."""

    def __init__(self, service_address: str, cause: str) -> None:
        super().__init__(
            f"failed updating metrics from {service_address}: {cause}",
            service_address,
        )
