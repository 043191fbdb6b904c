import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from ...application.ports.rate_limiter import RateLimiter

SWEEP_INTERVAL_SECONDS = 60


class InMemoryRateLimiter(RateLimiter):
    """Sliding window limiter kept in process memory.

    Keys whose window has fully elapsed are dropped, so idle clients do not
    accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._hits: Dict[str, Deque[float]] = {}
        self._expires: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._next_sweep = 0.0

    def _sweep(self, now: float) -> None:
        for key in [k for k, expires in self._expires.items() if expires <= now]:
            self._hits.pop(key, None)
            self._expires.pop(key, None)
        self._next_sweep = now + SWEEP_INTERVAL_SECONDS

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            hits = self._hits.get(key)
            if hits is None:
                hits = self._hits[key] = deque()
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= max_requests:
                if not hits:
                    del self._hits[key]
                return False
            hits.append(now)
            self._expires[key] = now + window_seconds
            return True

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)
            self._expires.pop(key, None)

    def __len__(self) -> int:
        return len(self._hits)
