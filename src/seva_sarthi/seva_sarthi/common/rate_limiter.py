from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict

from ..core.constants import DEFAULT_LOGIN_MAX_ATTEMPTS, DEFAULT_LOGIN_WINDOW_SECONDS


@dataclass
class _Attempts:
    count: int
    last_attempt: float


class RateLimiter:
    """In-memory fixed-window limiter keyed by an arbitrary string (e.g. email + IP).

    The window restarts when `window_seconds` elapsed since the last attempt.
    State is per-process; keys idle longer than the window are dropped on the
    next attempt.
    """

    def __init__(
        self,
        *,
        max_attempts: int = DEFAULT_LOGIN_MAX_ATTEMPTS,
        window_seconds: int = DEFAULT_LOGIN_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_attempts = int(max_attempts)
        self._window = float(window_seconds)
        self._clock = clock
        self._attempts: Dict[str, _Attempts] = {}

    @property
    def tracked_keys(self) -> int:
        return len(self._attempts)

    def _prune(self, now: float) -> None:
        expired = [k for k, r in self._attempts.items() if now - r.last_attempt > self._window]
        for k in expired:
            del self._attempts[k]

    def attempt(self, key: str) -> bool:
        now = self._clock()
        self._prune(now)
        record = self._attempts.get(key)

        if record is None or now - record.last_attempt > self._window:
            self._attempts[key] = _Attempts(count=1, last_attempt=now)
            return True

        if record.count >= self._max_attempts:
            return False

        record.count += 1
        record.last_attempt = now
        return True

    def reset(self, key: str) -> None:
        self._attempts.pop(key, None)
