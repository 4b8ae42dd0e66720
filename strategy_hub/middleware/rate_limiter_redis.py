# strategy_hub/middleware/rate_limiter_redis.py
"""
Redis-backed throttle counters, shared across app instances.
While Redis is unreachable the counters fall back to a process-local store.
"""
from typing import Optional

import redis

from ..utils.logger import log_structured
from .rate_limiter import InMemoryThrottleStore, ThrottleStore


class RedisThrottleStore(ThrottleStore):
    """
    Fixed-window counters. The window key is created with its TTL
    (SET NX EX) and incremented in the same MULTI/EXEC transaction, so a
    counter can never exist without an expiry.
    """

    def __init__(self, client: "redis.Redis", prefix: str = "throttle:",
                 fallback: Optional[ThrottleStore] = None):
        self.client = client
        self.prefix = prefix
        self.fallback = fallback or InMemoryThrottleStore()

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisThrottleStore":
        client = redis.from_url(
            redis_url,
            decode_responses=True,  # Automatically decode strings
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    def _unavailable(self, operation: str, error: redis.RedisError) -> None:
        log_structured(
            "throttle_redis_unavailable",
            {"operation": operation, "error": type(error).__name__},
            level="WARNING",
        )

    def get(self, key: str) -> int:
        try:
            value = self.client.get(self.prefix + key)
        except redis.RedisError as e:
            self._unavailable("get", e)
            return self.fallback.get(key)
        return int(value) if value else 0

    def increment(self, key: str, window_seconds: int) -> int:
        full_key = self.prefix + key
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.set(full_key, 0, ex=window_seconds, nx=True)
            pipe.incr(full_key)
            _, count = pipe.execute()
        except redis.RedisError as e:
            self._unavailable("increment", e)
            return self.fallback.increment(key, window_seconds)
        return int(count)

    def expire(self, key: str) -> None:
        try:
            self.client.delete(self.prefix + key)
        except redis.RedisError as e:
            self._unavailable("expire", e)
        self.fallback.expire(key)
