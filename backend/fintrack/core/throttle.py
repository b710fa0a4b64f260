from __future__ import annotations

import threading
import time
from collections import defaultdict, deque


class RateLimiter:
    """Sliding-window request counter keyed by client and path."""

    def __init__(self, max_requests: int, window_seconds: float) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._buckets: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def allow(self, key: str, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        with self._lock:
            bucket = self._buckets[key]
            while bucket and now - bucket[0] > self.window_seconds:
                bucket.popleft()
            if len(bucket) >= self.max_requests:
                return False
            bucket.append(now)
            return True

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


class TouchThrottle:
    """Remembers when each key was last touched and suppresses repeats within ``ttl_seconds``."""

    def __init__(self, ttl_seconds: float, max_entries: int = 10_000) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._last_touch: dict[int | str, float] = {}
        self._lock = threading.Lock()

    def should_touch(self, key: int | str, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            last = self._last_touch.get(key)
            if last is not None and now - last < self.ttl_seconds:
                return False
            if len(self._last_touch) >= self.max_entries:
                self._evict_expired(now)
            self._last_touch[key] = now
            return True

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, seen in self._last_touch.items() if now - seen >= self.ttl_seconds]
        for key in expired:
            del self._last_touch[key]
        if len(self._last_touch) >= self.max_entries:
            oldest = min(self._last_touch, key=self._last_touch.__getitem__)
            del self._last_touch[oldest]
