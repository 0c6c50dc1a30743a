"""Health Graph API client: OAuth, throttled API calls and the activity feed.

Public surface:
- HealthGraphClient.authorize_url()
- HealthGraphClient.get_new_token(code, callback=None)
- HealthGraphClient.api_call(options, callback=None)
- HealthGraphClient.activity_feed(options=None, callback=None)

Every call returns a ``concurrent.futures.Future`` and, when given, invokes
``callback(error, result)`` exactly once. Errors are never raised from these
methods; they are delivered through the future and the callback.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Union

from . import config
from .api_client.backoff import BackoffController
from .api_client.pagination import FeedPaginator
from .api_client.rate_limiter import RateLimiter, SlidingWindowRateLimiter
from .api_client.request_builder import build_request
from .api_client.resources import FITNESS_ACTIVITY_FEED
from .api_client.response_handling import (
    body_snippet,
    is_rate_limit_signature,
    is_rate_limited_response,
    parse_response,
)
from .api_client.scheduler import Scheduler, ThreadScheduler, deliver
from .api_client.transport import RequestsTransport, Transport
from .errors import (
    HealthGraphError,
    RateLimitError,
    TokenError,
    TransportError,
    UpstreamHTTPError,
    ValidationError,
)
from .models import CallOptions, ClientConfig
from .oauth import build_authorize_url, exchange_authorization_code
from .utils import mask_token

LOGGER = logging.getLogger(__name__)

Callback = Callable[[Optional[Exception], Any], Any]
Options = Union[CallOptions, Mapping[str, Any], None]

# Rate limiter key used when a call carries no access token
ANONYMOUS_KEY = "anonymous"


class HealthGraphClient:
    """Client for the RunKeeper Health Graph API.

    Collaborators (transport, rate limiter, backoff controller, scheduler)
    are owned by the instance unless injected, so independent clients never
    share throttle state or backoff budget.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        auth_url: str | None = None,
        access_token_url: str | None = None,
        redirect_uri: str | None = None,
        access_token: str | None = None,
        api_domain: str | None = None,
        *,
        transport: Transport | None = None,
        limiter: RateLimiter | None = None,
        backoff: BackoffController | None = None,
        scheduler: Scheduler | None = None,
        timeout: float | None = config.REQUEST_TIMEOUT,
    ) -> None:
        self.config = ClientConfig(
            client_id=client_id or None,
            client_secret=client_secret or None,
            auth_url=auth_url or config.AUTH_URL,
            access_token_url=access_token_url or config.ACCESS_TOKEN_URL,
            redirect_uri=redirect_uri or None,
            api_domain=api_domain or config.API_DOMAIN,
        )
        # Read at attempt time; callers may overwrite it after a token exchange
        self.access_token = access_token or None
        self._transport = transport or RequestsTransport()
        self._limiter = limiter or SlidingWindowRateLimiter()
        self._backoff = backoff or BackoffController()
        self._scheduler = scheduler or ThreadScheduler()
        self._timeout = timeout
        self._closed = False

    @classmethod
    def from_env(cls, **overrides: Any) -> "HealthGraphClient":
        """Build a client from environment-backed settings in ``config``."""

        settings: dict[str, Any] = {
            "client_id": config.CLIENT_ID,
            "client_secret": config.CLIENT_SECRET,
            "redirect_uri": config.REDIRECT_URI,
            "auth_url": config.AUTH_URL,
            "access_token_url": config.ACCESS_TOKEN_URL,
            "api_domain": config.API_DOMAIN,
        }
        settings.update(overrides)
        return cls(**settings)

    # -- configuration accessors -------------------------------------------
    @property
    def client_id(self) -> str | None:
        return self.config.client_id

    @property
    def client_secret(self) -> str | None:
        return self.config.client_secret

    @property
    def auth_url(self) -> str | None:
        return self.config.auth_url

    @property
    def access_token_url(self) -> str | None:
        return self.config.access_token_url

    @property
    def redirect_uri(self) -> str | None:
        return self.config.redirect_uri

    @property
    def api_domain(self) -> str | None:
        return self.config.api_domain

    @property
    def backoff(self) -> BackoffController:
        return self._backoff

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    # -- OAuth ---------------------------------------------------------------
    def authorize_url(self) -> str:
        """URL the user should be redirected to in order to grant access."""

        return build_authorize_url(self.config)

    def get_new_token(
        self, authorization_code: str | None, callback: Callback | None = None
    ) -> "Future[str]":
        """Exchange ``authorization_code`` for an access token.

        The token is handed to the callback; it is not stored on the client.
        """

        future: "Future[str]" = Future()
        self._submit(self._exchange, authorization_code, callback, future)
        return future

    def _submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule ``fn(*args)``; ``args`` ends with the call's callback and future."""

        callback, future = args[-2], args[-1]
        if self._closed:
            deliver(future, callback, _closed_error(), None)
            return
        self._scheduler.submit(fn, *args)

    def _exchange(
        self,
        authorization_code: str | None,
        callback: Callback | None,
        future: "Future[str]",
    ) -> None:
        try:
            token = exchange_authorization_code(
                authorization_code, self.config, self._transport, self._timeout
            )
        except HealthGraphError as exc:
            deliver(future, callback, exc, None)
            return
        except Exception as exc:
            LOGGER.error("Token exchange failed unexpectedly: %r", exc)
            error = TokenError(f"Token exchange failed: {exc}")
            error.__cause__ = exc
            deliver(future, callback, error, None)
            return
        deliver(future, callback, None, token)

    # -- API calls -------------------------------------------------------------
    def api_call(
        self, options: Options = None, callback: Callback | None = None
    ) -> "Future[Any]":
        """Issue a throttled request for a resource.

        ``options`` names either a ``resource`` from the resource table or an
        explicit ``media_type`` and ``uri``; see ``CallOptions`` for the rest.
        """

        future: "Future[Any]" = Future()
        try:
            opts = CallOptions.coerce(options)
        except ValidationError as exc:
            deliver(future, callback, exc, None)
            return future
        self._submit(self._attempt, opts, callback, future)
        return future

    def _attempt(
        self, options: CallOptions, callback: Callback | None, future: "Future[Any]"
    ) -> None:
        access_token = options.access_token or self.access_token
        try:
            request = build_request(
                options, str(self.api_domain), access_token, self._timeout
            )
        except ValidationError as exc:
            LOGGER.warning("Rejected Health Graph call: %s", exc)
            deliver(future, callback, exc, None)
            return
        except Exception as exc:
            LOGGER.error("Could not build Health Graph request: %s", exc)
            error = HealthGraphError(f"Could not build request: {exc}")
            error.__cause__ = exc
            deliver(future, callback, error, None)
            return

        try:
            allowed = self._limiter.check_and_record(access_token or ANONYMOUS_KEY)
        except Exception as exc:
            LOGGER.error("Rate limiter failed for %s: %s", request.uri, exc)
            error = RateLimitError("Health Graph limit by user error.")
            error.__cause__ = exc
            deliver(future, callback, error, None)
            return

        if not allowed:
            if self._try_backoff(options, callback, future, "client throttle"):
                return
            deliver(
                future,
                callback,
                RateLimitError(
                    f"Rate limit reached for token {mask_token(access_token)} "
                    "and no backoff budget left"
                ),
                None,
            )
            return

        try:
            response = self._transport.send(request)
        except TransportError as exc:
            if is_rate_limit_signature(str(exc)) and self._try_backoff(
                options, callback, future, "transport rate-limit"
            ):
                return
            LOGGER.error("Health Graph transport error: %s", exc)
            deliver(future, callback, exc, None)
            return
        except Exception as exc:
            # e.g. urllib3 rejecting a negative timeout with ValueError
            LOGGER.error(
                "%s %s failed unexpectedly: %r", request.method, request.uri, exc
            )
            error = TransportError(f"{request.method} {request.uri} failed: {exc}")
            error.__cause__ = exc
            deliver(future, callback, error, None)
            return

        try:
            result = parse_response(response)
        except UpstreamHTTPError as exc:
            if is_rate_limited_response(response) and self._try_backoff(
                options, callback, future, f"status {response.status_code}"
            ):
                return
            LOGGER.error(
                "%s %s returned status %s%s",
                request.method,
                request.uri,
                exc.status_code,
                f" body={body_snippet(exc.body)}" if exc.body else "",
            )
            deliver(future, callback, exc, None)
            return
        except HealthGraphError as exc:
            LOGGER.error("%s %s: %s", request.method, request.uri, exc)
            deliver(future, callback, exc, None)
            return
        deliver(future, callback, None, result)

    def _try_backoff(
        self,
        options: CallOptions,
        callback: Callback | None,
        future: "Future[Any]",
        reason: str,
    ) -> bool:
        """Reschedule the whole attempt after the backoff delay if budget allows."""

        if not self._backoff.acquire(options.backoff_limit):
            LOGGER.warning(
                "Backoff budget exhausted (%s used) after %s",
                self._backoff.used,
                reason,
            )
            return False
        LOGGER.warning(
            "Health Graph %s; backing off %.0fs (%s used)",
            reason,
            self._backoff.delay,
            self._backoff.used,
        )
        self._scheduler.call_later(
            self._backoff.delay,
            self._attempt,
            options,
            callback,
            future,
            on_drop=lambda: deliver(future, callback, _closed_error(), None),
        )
        return True

    # -- activity feed -----------------------------------------------------------
    def activity_feed(
        self,
        options: Options | Callback = None,
        callback: Callback | None = None,
    ) -> "Future[Any]":
        """Get the activity feed for the authenticated user.

        With ``get_next`` every page is fetched until there is no more
        ``next`` and the result is ``{"items": [...], "size": n}``, oldest page
        first. With ``modified_since`` the API may answer 304 Not Modified; the
        result is then ``[]``.
        """

        if callable(options) and callback is None:
            callback, options = options, None
        future: "Future[Any]" = Future()
        try:
            opts = CallOptions.coerce(options)  # type: ignore[arg-type]
        except ValidationError as exc:
            deliver(future, callback, exc, None)
            return future
        opts = replace(opts, resource=FITNESS_ACTIVITY_FEED)

        if not opts.get_next:
            return self.api_call(opts, callback)
        FeedPaginator(self, opts, callback, future).start()
        return future

    # -- lifecycle -----------------------------------------------------------------
    def close(self) -> None:
        self._closed = True
        shutdown = getattr(self._scheduler, "shutdown", None)
        if callable(shutdown):
            shutdown(wait=False)
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "HealthGraphClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _closed_error() -> HealthGraphError:
    return HealthGraphError("Health Graph client closed")
