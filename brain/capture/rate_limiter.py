"""
Per-user fixed-window rate limiter.

State is per process. Events over the cap are dropped, not queued.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict

# Bound on tracked users; expired windows are purged when it is reached
MAX_ENTRIES = 1000


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    Allow at most ``max_events`` per user per ``window_seconds``.

    Usage:
        limiter = FixedWindowRateLimiter(max_events=10, window_seconds=60)
        if not limiter.allow(user_id):
            return  # drop
    """

    def __init__(
        self,
        max_events: int = 10,
        window_seconds: float = 60.0,
        max_entries: int = MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_events < 1:
            raise ValueError("max_events must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._max_events = max_events
        self._window = window_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def allow(self, user_id: str) -> bool:
        """Record one event for ``user_id``; False when over the cap"""
        if not user_id:
            return False

        now = self._clock()
        if user_id not in self._windows and len(self._windows) >= self._max_entries:
            self._purge(now)

        window = self._windows.get(user_id)
        if window is None or now >= window.reset_at:
            self._windows[user_id] = _Window(count=1, reset_at=now + self._window)
            return True

        if window.count >= self._max_events:
            return False

        window.count += 1
        return True

    def _purge(self, now: float) -> None:
        expired = [user for user, w in self._windows.items() if now >= w.reset_at]
        for user in expired:
            del self._windows[user]

        # Still full: drop the oldest windows
        while len(self._windows) >= self._max_entries:
            del self._windows[next(iter(self._windows))]
