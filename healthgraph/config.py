"""Central configuration for the Health Graph client.

All values are constants imported by the rest of the package. Secrets are
read from environment variables (optionally via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Health Graph endpoints
# ---------------------------------------------------------------------------
AUTH_URL = os.getenv("HEALTHGRAPH_AUTH_URL", "https://runkeeper.com/apps/authorize")
ACCESS_TOKEN_URL = os.getenv(
    "HEALTHGRAPH_ACCESS_TOKEN_URL", "https://runkeeper.com/apps/token"
)
API_DOMAIN = os.getenv("HEALTHGRAPH_API_DOMAIN", "https://api.runkeeper.com")

# Client credentials pulled from the environment. Do not hardcode secrets.
CLIENT_ID = os.getenv("HEALTHGRAPH_CLIENT_ID", "")
CLIENT_SECRET = os.getenv("HEALTHGRAPH_CLIENT_SECRET", "")
REDIRECT_URI = os.getenv("HEALTHGRAPH_REDIRECT_URI", "")


# ---------------------------------------------------------------------------
# Rate limiting / backoff
# ---------------------------------------------------------------------------
# Health Graph allows 5 calls per minute per user (and 100,000 per day per
# app, which is not enforced client side).
RATE_LIMIT_CALLS = _env_int("RATE_LIMIT_CALLS", 5)
RATE_LIMIT_WINDOW_SECONDS = _env_float("RATE_LIMIT_WINDOW_SECONDS", 60.0)

# Fixed pause before a throttled call is attempted again.
BACKOFF_DELAY_SECONDS = _env_float("BACKOFF_DELAY_SECONDS", 30.0)

# Backoffs a client may consume in total unless a call sets its own limit.
DEFAULT_BACKOFF_LIMIT = _env_int("DEFAULT_BACKOFF_LIMIT", 10)


# ---------------------------------------------------------------------------
# HTTP / dispatch
# ---------------------------------------------------------------------------
# Request timeout in seconds, used when a call does not set its own.
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 15)

# HTTP session pool sizes for concurrent requests.
HTTP_POOL_CONNECTIONS = 20
HTTP_POOL_MAXSIZE = 100

# Worker threads running API call attempts.
DISPATCH_MAX_WORKERS = _env_int("DISPATCH_MAX_WORKERS", 4)

# Let urllib3 retry transient 5xx responses before they reach the client.
HTTP_RETRY_SERVER_ERRORS = _env_bool("HTTP_RETRY_SERVER_ERRORS", True)


# ---------------------------------------------------------------------------
# Activity feed pagination
# ---------------------------------------------------------------------------
# Upper bound on pages fetched per paginated feed call. 0 disables the cap.
FEED_MAX_PAGES = _env_int("FEED_MAX_PAGES", 0)
