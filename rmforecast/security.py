"""Request guards for the public endpoints: rate limiting and upload size."""

from __future__ import annotations

import os
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict

DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024


@dataclass
class RateLimitConfig:
    requests_per_minute: int = 120
    window_seconds: int = 60


class RateLimiter:
    """Thread-safe sliding-window rate limiter keyed by client identifier."""

    def __init__(self, config: RateLimitConfig | None = None):
        self.config = config or RateLimitConfig()
        self._lock = threading.Lock()
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)

    def is_allowed(self, client_id: str, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        with self._lock:
            window = self._requests[client_id]
            cutoff = now - self.config.window_seconds
            while window and window[0] < cutoff:
                window.popleft()
            if len(window) >= self.config.requests_per_minute:
                return False
            window.append(now)
            return True

    @classmethod
    def from_env(cls) -> "RateLimiter":
        limit = _positive_int_env("RATE_LIMIT_PER_MINUTE", RateLimitConfig.requests_per_minute)
        return cls(RateLimitConfig(requests_per_minute=limit))


def _positive_int_env(name: str, default: int) -> int:
    raw_value = os.environ.get(name)
    try:
        value = int(raw_value) if raw_value else default
    except ValueError:
        return default
    return value if value > 0 else default


def max_upload_bytes() -> int:
    """Largest accepted snapshot upload; ``MAX_UPLOAD_BYTES`` overrides the 100 MB default."""
    return _positive_int_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
