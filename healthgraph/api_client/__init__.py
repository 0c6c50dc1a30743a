"""Health Graph request machinery (resources, rate limiter, backoff, transport)."""

from .backoff import BackoffController  # noqa: F401
from .rate_limiter import RateLimiter, SlidingWindowRateLimiter  # noqa: F401
from .resources import RESOURCES  # noqa: F401
from .scheduler import Scheduler, ThreadScheduler  # noqa: F401
from .session import create_default_session  # noqa: F401
from .transport import RequestsTransport, Transport  # noqa: F401
