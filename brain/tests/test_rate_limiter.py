"""Tests for FixedWindowRateLimiter."""

import pytest


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def make_limiter(clock, **kwargs):
    from brain.capture.rate_limiter import FixedWindowRateLimiter
    return FixedWindowRateLimiter(clock=clock, **kwargs)


class TestFixedWindow:
    def test_cap_within_window(self):
        limiter = make_limiter(FakeClock(), max_events=10, window_seconds=60)

        assert all(limiter.allow("U1") for _ in range(10))
        assert not limiter.allow("U1")

    def test_users_are_independent(self):
        limiter = make_limiter(FakeClock(), max_events=1, window_seconds=60)

        assert limiter.allow("U1")
        assert limiter.allow("U2")
        assert not limiter.allow("U1")

    def test_window_resets(self):
        clock = FakeClock()
        limiter = make_limiter(clock, max_events=2, window_seconds=60)

        limiter.allow("U1")
        limiter.allow("U1")
        assert not limiter.allow("U1")

        clock.now = 59.9
        assert not limiter.allow("U1")
        clock.now = 60.0
        assert limiter.allow("U1")

    def test_empty_user_rejected(self):
        limiter = make_limiter(FakeClock())
        assert not limiter.allow("")

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            make_limiter(FakeClock(), max_events=0)
        with pytest.raises(ValueError):
            make_limiter(FakeClock(), window_seconds=0)


class TestPurge:
    def test_expired_windows_purged_at_capacity(self):
        clock = FakeClock()
        limiter = make_limiter(clock, max_events=1, window_seconds=10, max_entries=3)

        for user in ("a", "b", "c"):
            limiter.allow(user)
        clock.now = 11
        limiter.allow("d")

        assert len(limiter) == 1

    def test_oldest_dropped_when_nothing_expired(self):
        limiter = make_limiter(FakeClock(), max_events=1, window_seconds=10, max_entries=2)

        limiter.allow("a")
        limiter.allow("b")
        limiter.allow("c")

        assert len(limiter) == 2
        # "a" was evicted, so it starts a fresh window
        assert limiter.allow("a")
