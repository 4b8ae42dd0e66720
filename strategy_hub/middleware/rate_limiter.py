# strategy_hub/middleware/rate_limiter.py
"""
Request throttle for strategy creation.

A fixed-window counter per key (client IP + caller id). The first hit in a
window starts the counter at 1; a hit is rejected when its increment takes
the counter past the ceiling; when the window elapses the entry is removed
entirely so the next hit starts a new window.

The counter lives behind `ThrottleStore`. `InMemoryThrottleStore` is
process-local and only suitable for a single instance; multi-instance
deployments use `RedisThrottleStore` (see rate_limiter_redis.py).
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple
import threading
import time

from fastapi import Depends, Request

from ..utils.error_handler import RateLimitExceededError
from ..utils.jwt_deps import get_current_user_id_dep
from ..utils.logger import log_structured


class ThrottleStore(ABC):
    """Counter storage used by RequestThrottle."""

    @abstractmethod
    def get(self, key: str) -> int:
        """Current count for the key in its live window (0 when absent)."""

    @abstractmethod
    def increment(self, key: str, window_seconds: int) -> int:
        """Add one hit. An absent key starts a fresh window at 1."""

    @abstractmethod
    def expire(self, key: str) -> None:
        """Remove the key entirely."""


class InMemoryThrottleStore(ThrottleStore):
    """In-memory counters (single process only; for production, use Redis)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, cleanup_interval: int = 300):
        self._clock = clock
        self._entries: Dict[str, Tuple[int, float]] = {}  # key -> (count, window end)
        self._lock = threading.Lock()
        self.cleanup_interval = cleanup_interval  # Sweep idle keys every 5 minutes
        self.last_cleanup = clock()

    def _cleanup_old_entries(self, now: float) -> None:
        """Remove elapsed windows to prevent memory leak."""
        if now - self.last_cleanup < self.cleanup_interval:
            return
        for key in [k for k, (_, ends) in self._entries.items() if ends <= now]:
            del self._entries[key]
        self.last_cleanup = now

    def _live(self, key: str, now: float) -> Optional[Tuple[int, float]]:
        entry = self._entries.get(key)
        if entry is not None and entry[1] <= now:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> int:
        with self._lock:
            now = self._clock()
            self._cleanup_old_entries(now)
            entry = self._live(key, now)
            return entry[0] if entry else 0

    def increment(self, key: str, window_seconds: int) -> int:
        with self._lock:
            now = self._clock()
            entry = self._live(key, now)
            if entry is None:
                self._entries[key] = (1, now + window_seconds)
                return 1
            count = entry[0] + 1
            self._entries[key] = (count, entry[1])
            return count

    def expire(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RequestThrottle:
    """Caps hits per key at `limit` within `window_seconds`."""

    def __init__(self, store: ThrottleStore, limit: int = 30, window_seconds: int = 60):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds

    def hit(self, key: str) -> bool:
        """
        Record a hit. Returns False when the key is over its ceiling.
        The increment is the decision (one atomic store call per hit).
        Rejected hits still count but never move the window end.
        """
        return self.store.increment(key, self.window_seconds) <= self.limit


def build_throttle(limit: int, window_seconds: int, redis_url: Optional[str] = None) -> RequestThrottle:
    """Redis-backed throttle when REDIS_URL is configured, in-memory otherwise."""
    if redis_url:
        from .rate_limiter_redis import RedisThrottleStore
        return RequestThrottle(RedisThrottleStore.from_url(redis_url), limit, window_seconds)
    return RequestThrottle(InMemoryThrottleStore(), limit, window_seconds)


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, or "unknown"."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return "unknown"


async def throttle_strategy_creation(
    request: Request,
    user_id: str = Depends(get_current_user_id_dep),
) -> str:
    """
    FastAPI dependency guarding strategy creation.
    Resolves the caller first, so unauthenticated requests never count.
    """
    throttle: RequestThrottle = request.app.state.throttle
    key = f"{client_ip(request)}:{user_id}"
    if not throttle.hit(key):
        log_structured("throttle_rejected", {"user_id": user_id, "limit": throttle.limit}, level="WARNING")
        raise RateLimitExceededError(retry_after=throttle.window_seconds)
    return user_id
