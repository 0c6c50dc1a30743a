"""OAuth2 authorization-code helpers for the Health Graph API.

Covers the two steps a client performs itself: building the authorize URL
the user is redirected to, and exchanging the returned authorization code
for an access token. Tokens and secrets are never written to logs in full.
"""

from __future__ import annotations

import json
import logging
import urllib.parse
from typing import Any, Dict

from .api_client.response_handling import body_snippet
from .api_client.transport import Transport
from .errors import TokenError, ValidationError
from .models import ClientConfig, RequestDescriptor
from .utils import mask_token

__all__ = ["build_authorize_url", "exchange_authorization_code", "mask_token"]

LOGGER = logging.getLogger(__name__)


def build_authorize_url(config: ClientConfig) -> str:
    if not config.client_id:
        raise ValidationError("client_id is required to build the authorize URL")
    query: Dict[str, str] = {"client_id": config.client_id, "response_type": "code"}
    if config.redirect_uri:
        query["redirect_uri"] = config.redirect_uri
    return f"{config.auth_url}?{urllib.parse.urlencode(query)}"


def exchange_authorization_code(
    authorization_code: str | None,
    config: ClientConfig,
    transport: Transport,
    timeout: float | None = None,
) -> str:
    """Exchange an authorization code for an access token.

    Args:
        authorization_code: Code received on the redirect URI.
        config: Client credentials and token endpoint.
        transport: Transport used to POST the form.
        timeout: Optional request timeout in seconds.

    Returns:
        The ``access_token`` from the token endpoint.

    Raises:
        ValidationError: The code or client credentials are missing.
        TransportError: The token endpoint could not be reached.
        TokenError: The endpoint rejected the code or returned an unusable body.
    """
    if not authorization_code:
        raise ValidationError("authorization_code is required")
    if not config.client_id or not config.client_secret:
        raise ValidationError(
            "Client credentials not configured (client_id / client_secret missing)"
        )

    payload = {
        "grant_type": "authorization_code",
        "code": authorization_code,
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "redirect_uri": config.redirect_uri or "",
    }
    request = RequestDescriptor(
        method="POST",
        uri=str(config.access_token_url),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=urllib.parse.urlencode(payload),
        timeout=timeout,
    )
    LOGGER.info(
        "Exchanging authorization code %s for an access token",
        mask_token(authorization_code),
    )
    LOGGER.debug("Token endpoint: %s", config.access_token_url)

    response = transport.send(request)
    status = response.status_code
    LOGGER.debug("Token endpoint status=%s", status)
    if status >= 400:
        snippet = body_snippet(response.body, limit=200)
        LOGGER.error(
            "Token exchange failed status=%s%s",
            status,
            f" snippet={snippet}" if snippet else "",
        )
        raise TokenError(f"Token exchange failed with status {status}")

    try:
        data: Any = json.loads(response.body)
    except ValueError as exc:
        LOGGER.error("Invalid JSON in token response: %s", exc)
        raise TokenError("Invalid JSON in token response") from exc

    if not isinstance(data, dict):
        LOGGER.error("Unexpected token response shape: %s", type(data).__name__)
        raise TokenError("Unexpected token response shape")

    access_token = data.get("access_token")
    if not access_token:
        LOGGER.error("No access_token in token response")
        raise TokenError("No access_token in response")
    LOGGER.info("Token exchange succeeded: access_token=%s", mask_token(access_token))
    return str(access_token)
