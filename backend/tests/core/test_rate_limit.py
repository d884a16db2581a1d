"""Fixed-Window Rate Limiter — verifies counting, rejection, and window reset."""

from eventdesk.core.rate_limit import FixedWindowRateLimiter


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_rejects():
    clock = _Clock()
    limiter = FixedWindowRateLimiter(3, 60, clock=clock)
    first = limiter.check("u1")
    assert first.allowed and first.remaining == 2
    assert first.retry_after_ms == 60_000
    assert limiter.check("u1").remaining == 1
    assert limiter.check("u1").remaining == 0

    clock.now += 15
    rejected = limiter.check("u1")
    assert not rejected.allowed
    assert rejected.remaining == 0
    assert rejected.retry_after_ms == 45_000


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(1, 60, clock=_Clock())
    assert limiter.check("a").allowed
    assert limiter.check("b").allowed
    assert not limiter.check("a").allowed


def test_window_expiry_resets_count():
    clock = _Clock()
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)
    limiter.check("a")
    clock.now += 60
    assert limiter.check("a").allowed


def test_reset_clears_all_windows():
    limiter = FixedWindowRateLimiter(1, 60, clock=_Clock())
    limiter.check("a")
    limiter.reset()
    assert limiter.check("a").allowed


def test_expired_keys_purged_past_max_keys():
    clock = _Clock()
    limiter = FixedWindowRateLimiter(1, 10, clock=clock, max_keys=2)
    for key in ("a", "b", "c"):
        limiter.check(key)
    clock.now += 11
    limiter.check("d")
    assert set(limiter._windows) == {"d"}
