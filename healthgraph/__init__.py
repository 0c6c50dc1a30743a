"""Client library for the RunKeeper Health Graph API."""

from .client import HealthGraphClient  # noqa: F401
from .errors import (  # noqa: F401
    HealthGraphError,
    RateLimitError,
    ResponseParseError,
    TokenError,
    TransportError,
    UpstreamHTTPError,
    ValidationError,
)
from .models import CallOptions, ClientConfig, Resource  # noqa: F401
