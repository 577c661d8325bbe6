"""HTTP client for the configuration endpoints of the OpenVINO model server."""

from __future__ import annotations

import logging
import time
import urllib.error
import urllib.request
from datetime import timedelta
from enum import IntEnum

from mmadapter.ovms.modelconfig import (
    ModelVersionStatus,
    parse_config_response,
    parse_error_response,
)

__all__ = ["StatusCode", "OvmsError", "OvmsClient"]

logger = logging.getLogger(__name__)


class StatusCode(IntEnum):
    """Status codes of the model runtime protocol."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class OvmsError(Exception):
    """A failure talking to the model server, carrying a status code."""

    def __init__(self, code: StatusCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


ConfigStatus = dict[str, list[ModelVersionStatus]]


def _seconds(timeout: float | timedelta | None) -> float | None:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return timeout


class OvmsClient:
    """Queries and reloads the model configuration of a server at ``address``."""

    def __init__(self, address: str) -> None:
        self.address = address
        self.config_url = f"{address}/v1/config"
        self.reload_url = f"{address}/v1/config/reload"

    def _send(
        self, method: str, url: str, timeout: float | None, protocol_msg: str, read_msg: str
    ) -> tuple[int, bytes]:
        request = urllib.request.Request(
            url, method=method, data=b"" if method == "POST" else None
        )
        try:
            response = urllib.request.urlopen(request, timeout=timeout)
        except urllib.error.HTTPError as exc:
            response = exc
        except (urllib.error.URLError, OSError) as exc:
            raise OvmsError(StatusCode.UNKNOWN, f"{protocol_msg}: {exc}") from exc
        with response:
            try:
                body = response.read()
            except OSError as exc:
                raise OvmsError(StatusCode.UNKNOWN, f"{read_msg}: {exc}") from exc
            return response.status if hasattr(response, "status") else response.code, body

    @staticmethod
    def _parse_success(body: bytes, message: str) -> ConfigStatus:
        try:
            return parse_config_response(body)
        except ValueError as exc:
            logger.debug("%s: body=%r", message, body)
            raise OvmsError(StatusCode.UNKNOWN, f"{message}: {exc}") from exc

    @staticmethod
    def _parse_failure(body: bytes, message: str) -> str:
        try:
            return parse_error_response(body)
        except ValueError as exc:
            logger.debug("%s: body=%r", message, body)
            raise OvmsError(StatusCode.UNKNOWN, f"{message}: {exc}") from exc

    def get_config(self, timeout: float | timedelta | None = None) -> ConfigStatus:
        """Fetch the status of every configured model."""
        status, body = self._send(
            "GET",
            self.config_url,
            _seconds(timeout),
            "Protocol error getting the config",
            "Error reading config status response body",
        )
        if status == 200:
            return self._parse_success(body, "Error parsing /config response")

        error = self._parse_failure(body, "Error parsing /config error response")
        description = f"Error response when getting the config: {error}"
        logger.error("Call to /v1/config returned an error: code=%d %s", status, description)
        raise OvmsError(StatusCode.INTERNAL, description)

    def reload_config(self, timeout: float | timedelta | None = None) -> ConfigStatus:
        """Ask the server to reload its config file and return the model statuses.

        When the reload reports an error the statuses are fetched separately,
        so that failing models can be told apart from loaded ones.
        """
        seconds = _seconds(timeout)
        deadline = None if seconds is None else time.monotonic() + seconds
        status, body = self._send(
            "POST",
            self.reload_url,
            seconds,
            "Communication error reloading the config",
            "Error reading config reload response body",
        )
        if status in (200, 201):
            return self._parse_success(body, "Error parsing /config/reload response")

        error = self._parse_failure(body, "Error parsing /config/reload error response")
        logger.error(
            "Call to /v1/config/reload returned an error: code=%d "
            "Error response when reloading the config: %s",
            status, error,
        )

        remaining = None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise OvmsError(
                    StatusCode.UNKNOWN, "Protocol error getting the config: deadline exceeded"
                )
        return self.get_config(remaining)