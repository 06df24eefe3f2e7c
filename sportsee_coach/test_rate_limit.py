"""
Rate Limiter Tests
==================
"""

from sportsee_coach.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestRateLimiter:

    def test_second_request_too_soon(self):
        clock = FakeClock()
        limiter = RateLimiter(min_interval=2.0, clock=clock)

        assert limiter.allow("client-a")
        clock.now += 1.0
        assert not limiter.allow("client-a")
        clock.now += 1.5
        assert limiter.allow("client-a")

    def test_clients_are_independent(self):
        limiter = RateLimiter(min_interval=2.0, clock=FakeClock())
        assert limiter.allow("client-a")
        assert limiter.allow("client-b")

    def test_explicit_time_and_reset(self):
        limiter = RateLimiter(min_interval=2.0)
        assert limiter.allow("client-a", now=10.0)
        assert not limiter.allow("client-a", now=11.0)
        limiter.reset()
        assert limiter.allow("client-a", now=11.0)

    def test_stale_keys_are_dropped(self):
        limiter = RateLimiter(min_interval=2.0)
        for i in range(10000):
            assert limiter.allow(f"agent-{i}", now=i * 3.0)
        assert len(limiter) <= 2

    def test_recent_keys_survive_sweep(self):
        limiter = RateLimiter(min_interval=2.0)
        assert limiter.allow("client-a", now=10.0)
        assert limiter.allow("client-b", now=11.5)
        assert limiter.allow("client-c", now=12.5)   # sweeps client-a only
        assert not limiter.allow("client-b", now=13.0)
        assert limiter.allow("client-a", now=13.0)
