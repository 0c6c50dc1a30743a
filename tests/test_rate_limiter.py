import logging
import threading

import pytest

from healthgraph.api_client.rate_limiter import SlidingWindowRateLimiter
from healthgraph.utils import mask_token


def test_allows_up_to_rate_then_limits(strict_limiter):
    results = [strict_limiter.check_and_record("tok") for _ in range(7)]
    assert results == [True] * 5 + [False, False]
    # Refused calls are not recorded
    assert strict_limiter.snapshot("tok") == 5


def test_window_slides(strict_limiter):
    clock = strict_limiter.clock
    for second in range(5):
        clock["now"] = float(second)
        assert strict_limiter.check_and_record("tok")
    clock["now"] = 59.5
    assert not strict_limiter.check_and_record("tok")
    # First call (t=0) leaves the window at t=60
    clock["now"] = 60.0
    assert strict_limiter.check_and_record("tok")
    assert not strict_limiter.check_and_record("tok")
    clock["now"] = 61.0
    assert strict_limiter.check_and_record("tok")


def test_keys_are_independent(strict_limiter):
    for _ in range(5):
        assert strict_limiter.check_and_record("alice")
    assert not strict_limiter.check_and_record("alice")
    assert strict_limiter.check_and_record("bob")
    assert strict_limiter.snapshot("bob") == 1


def test_never_exceeds_rate_in_any_window():
    limiter = SlidingWindowRateLimiter(rate=3, window=10.0)
    accepted = [
        t / 2.0 for t in range(200) if limiter.check_and_record("k", now=t / 2.0)
    ]
    for i, start in enumerate(accepted):
        in_window = [t for t in accepted[i:] if t - start < 10.0]
        assert len(in_window) <= 3


def test_explicit_now_overrides_clock():
    limiter = SlidingWindowRateLimiter(rate=1, window=5.0, clock=lambda: 1000.0)
    assert limiter.check_and_record("k", now=0.0)
    assert not limiter.check_and_record("k", now=4.9)
    assert limiter.check_and_record("k", now=5.0)


def test_reset_forgets_calls(strict_limiter):
    for _ in range(5):
        strict_limiter.check_and_record("a")
        strict_limiter.check_and_record("b")
    strict_limiter.reset("a")
    assert strict_limiter.check_and_record("a")
    assert not strict_limiter.check_and_record("b")
    strict_limiter.reset()
    assert strict_limiter.snapshot("b") == 0


@pytest.mark.parametrize("rate,window", [(0, 60.0), (5, 0), (5, -1.0)])
def test_invalid_configuration(rate, window):
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(rate=rate, window=window)


def test_concurrent_callers_share_one_budget():
    limiter = SlidingWindowRateLimiter(rate=10, window=60.0, clock=lambda: 0.0)
    allowed = []
    lock = threading.Lock()
    start = threading.Event()

    def worker():
        start.wait()
        for _ in range(10):
            ok = limiter.check_and_record("shared")
            with lock:
                allowed.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    start.set()
    for t in threads:
        t.join(timeout=2)

    assert len(allowed) == 80
    assert allowed.count(True) == 10


def test_limited_key_is_logged_masked(caplog):
    limiter = SlidingWindowRateLimiter(rate=1, window=60.0, clock=lambda: 0.0)
    caplog.set_level(logging.DEBUG, logger="healthgraph.api_client.rate_limiter")
    assert limiter.check_and_record("secret-token-9876")
    assert not limiter.check_and_record("secret-token-9876")

    assert mask_token("secret-token-9876") in caplog.text
    assert "secret-token-9876" not in caplog.text
