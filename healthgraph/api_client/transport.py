"""Transport seam between the client and the HTTP library."""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from ..errors import TransportError
from ..models import RequestDescriptor, TransportResponse
from .session import create_default_session

__all__ = ["Transport", "RequestsTransport"]

LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, request: RequestDescriptor) -> TransportResponse:
        """Perform ``request``; raise ``TransportError`` when no response arrives."""
        ...


class RequestsTransport:
    """Sends request descriptors through a pooled ``requests.Session``."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or create_default_session()

    @property
    def session(self) -> requests.Session:
        return self._session

    def send(self, request: RequestDescriptor) -> TransportResponse:
        LOGGER.debug("%s %s", request.method, request.uri)
        try:
            response = self._session.request(
                request.method,
                request.uri,
                headers=request.headers,
                data=request.body,
                timeout=request.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(
                f"{request.method} {request.uri} failed: {exc}"
            ) from exc
        return TransportResponse(
            status_code=response.status_code,
            body=response.text or "",
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._session.close()
