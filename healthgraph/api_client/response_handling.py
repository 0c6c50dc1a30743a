"""Shared HTTP response helpers for Health Graph API interactions."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from ..errors import ResponseParseError, UpstreamHTTPError
from ..models import TransportResponse

__all__ = [
    "OK_STATUSES",
    "is_rate_limit_signature",
    "is_rate_limited_response",
    "parse_response",
    "body_snippet",
]

LOGGER = logging.getLogger(__name__)

OK_STATUSES = frozenset({200, 304})

_RATE_LIMIT_PATTERN = re.compile(r"rate-limit", re.IGNORECASE)


def is_rate_limit_signature(text: Optional[str]) -> bool:
    """Return True when ``text`` carries Health Graph's rate-limit marker."""

    return bool(text) and _RATE_LIMIT_PATTERN.search(str(text)) is not None


def is_rate_limited_response(response: TransportResponse) -> bool:
    return response.status_code == 429 or is_rate_limit_signature(response.body)


def parse_response(response: TransportResponse) -> Any:
    """Return the decoded body of a 200/304 response.

    Raises:
        UpstreamHTTPError: status is neither 200 nor 304.
        ResponseParseError: the body is not valid JSON.
    """

    if response.status_code not in OK_STATUSES:
        raise UpstreamHTTPError(response.status_code, response.body)
    if not response.body:
        return {}
    try:
        return json.loads(response.body)
    except ValueError as exc:
        LOGGER.debug("Invalid JSON body: %s", body_snippet(response.body))
        raise ResponseParseError(
            "Health Graph body reply is not a valid JSON string."
        ) from exc


def body_snippet(body: Optional[str], limit: int = 300) -> Optional[str]:
    """Best-effort compact text for log lines."""

    if not isinstance(body, str):
        return None
    trimmed = body.strip()
    if not trimmed:
        return None
    return (trimmed[: limit - 3] + "...") if len(trimmed) > limit else trimmed
