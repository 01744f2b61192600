from __future__ import annotations


class StatsApiError(RuntimeError):
    """Base class for failures talking to the statistics API."""


class ApiTransportError(StatsApiError):
    """Raised when the request never produced an HTTP response."""


class ApiStatusError(StatsApiError):
    """Raised when the API answers with a non-success status code."""

    def __init__(self, endpoint: str, status_code: int, detail: str = "") -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        self.detail = detail
        message = f"GET {endpoint} failed ({status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PayloadError(StatsApiError):
    """Raised when a response body is not the JSON shape an endpoint promises."""

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Malformed payload from {endpoint}: {reason}")
