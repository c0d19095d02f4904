"""HTTP client for the upstream ``/memberlist`` endpoint."""

import logging

import requests
from pydantic import ValidationError

from app.exceptions import (
    MembershipDecodeError,
    MembershipFetchError,
    MembershipReadError,
)
from app.schemas.membership import MembershipSnapshot

logger = logging.getLogger(__name__)


class MembershipClient:
    """Fetches and decodes membership snapshots."""

    def __init__(
        self,
        service_address: str,
        view_key: str,
        http_timeout: float | None = 10.0,
    ):
        """Initialize MembershipClient.

        Args:
            service_address: Upstream host and port (e.g. "localhost:8080")
            view_key: Membership view to request
            http_timeout: Timeout for the upstream request in seconds, or
                None to wait indefinitely
        """
        self.service_address = service_address
        self.view_key = view_key
        self.http_timeout = http_timeout
        self.url = f"http://{service_address}/memberlist"

    def fetch_snapshot(self) -> MembershipSnapshot:
        """Fetch one membership snapshot.

        The response status is not inspected; an error page fails when it
        is decoded.

        Raises:
            MembershipFetchError: The service could not be reached
            MembershipReadError: The response body could not be read
            MembershipDecodeError: The body is not a membership document
        """
        try:
            response = requests.get(
                self.url,
                params={"viewKey": self.view_key, "format": "json-pretty"},
                timeout=self.http_timeout,
                stream=True,
            )
        except requests.RequestException as e:
            raise MembershipFetchError(self.service_address, str(e)) from e

        with response:
            try:
                body = response.content
            except (requests.RequestException, OSError) as e:
                raise MembershipReadError(self.service_address, str(e)) from e

        logger.debug(
            "Fetched membership view",
            extra={"status_code": response.status_code, "size": len(body)},
        )

        return self.decode(body)

    def decode(self, body: bytes | str) -> MembershipSnapshot:
        """Decode a response body into a snapshot."""
        try:
            return MembershipSnapshot.model_validate_json(body)
        except ValidationError as e:
            raise MembershipDecodeError(self.service_address, str(e)) from e
