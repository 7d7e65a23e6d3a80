from __future__ import annotations

from seva_sarthi.common.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_blocks_after_max_attempts():
    limiter = RateLimiter(max_attempts=3, window_seconds=60, clock=FakeClock())

    assert [limiter.attempt("k") for _ in range(4)] == [True, True, True, False]


def test_window_restarts_after_quiet_period():
    clock = FakeClock()
    limiter = RateLimiter(max_attempts=2, window_seconds=60, clock=clock)
    limiter.attempt("k")
    limiter.attempt("k")
    assert limiter.attempt("k") is False

    clock.now += 61
    assert limiter.attempt("k") is True


def test_keys_are_independent_and_reset_clears():
    limiter = RateLimiter(max_attempts=1, window_seconds=60, clock=FakeClock())
    limiter.attempt("a")

    assert limiter.attempt("a") is False
    assert limiter.attempt("b") is True

    limiter.reset("a")
    assert limiter.attempt("a") is True


def test_idle_keys_are_forgotten():
    clock = FakeClock()
    limiter = RateLimiter(max_attempts=5, window_seconds=60, clock=clock)
    for i in range(10):
        limiter.attempt(f"user{i}@example.org|10.0.0.{i}")
    assert limiter.tracked_keys == 10

    clock.now += 61
    limiter.attempt("fresh")

    assert limiter.tracked_keys == 1
