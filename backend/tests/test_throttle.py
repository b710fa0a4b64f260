from fintrack.core.throttle import RateLimiter, TouchThrottle


def test_touch_throttle_suppresses_repeats_within_ttl() -> None:
    throttle = TouchThrottle(ttl_seconds=300)
    assert throttle.should_touch(1, now=1000.0) is True
    assert throttle.should_touch(1, now=1200.0) is False
    assert throttle.should_touch(2, now=1200.0) is True
    assert throttle.should_touch(1, now=1300.0) is True


def test_touch_throttle_stays_bounded() -> None:
    throttle = TouchThrottle(ttl_seconds=300, max_entries=2)
    assert throttle.should_touch("a", now=0.0) is True
    assert throttle.should_touch("b", now=10.0) is True
    assert throttle.should_touch("c", now=20.0) is True
    # "a" was evicted as the oldest entry
    assert throttle.should_touch("a", now=30.0) is True
    assert len(throttle._last_touch) <= 2


def test_rate_limiter_sliding_window() -> None:
    limiter = RateLimiter(max_requests=2, window_seconds=60)
    assert limiter.allow("client:/path", now=0.0) is True
    assert limiter.allow("client:/path", now=1.0) is True
    assert limiter.allow("client:/path", now=2.0) is False
    assert limiter.allow("other:/path", now=2.0) is True
    assert limiter.allow("client:/path", now=61.5) is True
