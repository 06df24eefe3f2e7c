"""
SportSee Coach Rate Limiter
===========================

One request per `min_interval` seconds per client key. The clock is
injected so tests can drive time explicitly.

Client keys come from request headers, so entries older than
`min_interval` are swept out at most once per interval.
"""

import threading
import time
from typing import Callable, Dict, Optional


class RateLimiter:
    def __init__(self, min_interval: float = 2.0, clock: Callable[[], float] = time.monotonic):
        self.min_interval = min_interval
        self.clock = clock
        self._last_seen: Dict[str, float] = {}
        self._last_sweep: Optional[float] = None
        self._lock = threading.Lock()

    def allow(self, client_key: str, now: Optional[float] = None) -> bool:
        """Record the request and return True, or return False if the client is too fast."""
        now = self.clock() if now is None else now
        with self._lock:
            self._sweep(now)
            last = self._last_seen.get(client_key)
            if last is not None and now - last < self.min_interval:
                return False
            self._last_seen[client_key] = now
            return True

    def _sweep(self, now: float):
        # Caller holds the lock
        if self._last_sweep is not None and now - self._last_sweep < self.min_interval:
            return
        self._last_seen = {
            key: seen for key, seen in self._last_seen.items()
            if now - seen < self.min_interval
        }
        self._last_sweep = now

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_seen)

    def reset(self):
        with self._lock:
            self._last_seen.clear()
            self._last_sweep = None
