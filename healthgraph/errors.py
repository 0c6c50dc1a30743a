"""Central error types used across the client."""

from __future__ import annotations


class HealthGraphError(RuntimeError):
    """Base error for Health Graph client failures."""


class ValidationError(HealthGraphError):
    """Raised when call arguments are missing or malformed."""


class RateLimitError(HealthGraphError):
    """Raised when a call is throttled with no backoff budget left, or the limiter fails."""


class TransportError(HealthGraphError):
    """Raised when the HTTP request could not be completed."""


class UpstreamHTTPError(HealthGraphError):
    """Raised when Health Graph answers with a status other than 200 or 304."""

    def __init__(self, status_code: int, body: str | None = None) -> None:
        super().__init__(f"Health Graph returned status code {status_code}")
        self.status_code = status_code
        self.body = body


class ResponseParseError(HealthGraphError):
    """Raised when a response body is not valid JSON."""


class TokenError(HealthGraphError):
    """Raised when the authorization code exchange fails."""


__all__ = [
    "HealthGraphError",
    "ValidationError",
    "RateLimitError",
    "TransportError",
    "UpstreamHTTPError",
    "ResponseParseError",
    "TokenError",
]
