"""
CommunityOS Bot - Rate Limiter
Per-user fixed-window counter guarding the response pipeline.
"""

import math
import time
from typing import Callable, Dict

from constants import RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_MAX_REQUESTS


class RateLimitResult:
    """Outcome of a limit check. retry_after_ms is only set when denied."""

    def __init__(self, allowed: bool, retry_after_ms: int = 0):
        self.allowed = allowed
        self.retry_after_ms = retry_after_ms

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.retry_after_ms / 1000)

    def __repr__(self):
        return f"<RateLimitResult allowed={self.allowed} retry_after_ms={self.retry_after_ms}>"


class RateLimiter:
    """Fixed-window limiter keyed by user id.

    The window restarts on the first call after it has fully elapsed, so a
    user can burst up to twice the limit across a window boundary.
    """

    def __init__(
        self,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._entries: Dict[str, dict] = {}  # user_id -> {count, window_start}

    def check_limit(self, user_id: str) -> RateLimitResult:
        """Count one attempt for user_id, or deny it if the window is full."""
        now = self._clock()
        entry = self._entries.get(user_id)
        if entry is None:
            entry = {"count": 0, "window_start": now}
            self._entries[user_id] = entry

        elapsed = now - entry["window_start"]
        if elapsed > self.window:
            entry["count"] = 0
            entry["window_start"] = now
            elapsed = 0.0

        if entry["count"] >= self.max_requests:
            retry_ms = math.ceil((self.window - elapsed) * 1000)
            return RateLimitResult(False, max(1, retry_ms))

        entry["count"] += 1
        return RateLimitResult(True)

    def get_status(self, user_id: str) -> dict:
        """Usage snapshot for a user without counting an attempt."""
        window_ms = int(self.window * 1000)
        entry = self._entries.get(user_id)
        if entry is None:
            return {"used": 0, "remaining": self.max_requests, "resets_in_ms": window_ms}

        elapsed = self._clock() - entry["window_start"]
        if elapsed > self.window:
            return {"used": 0, "remaining": self.max_requests, "resets_in_ms": window_ms}

        return {
            "used": entry["count"],
            "remaining": max(0, self.max_requests - entry["count"]),
            "resets_in_ms": int((self.window - elapsed) * 1000),
        }

    def clear(self, user_id: str) -> bool:
        """Forget a user's window. Returns whether anything was tracked."""
        return self._entries.pop(user_id, None) is not None

    def __len__(self):
        return len(self._entries)
