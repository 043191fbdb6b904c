import time
import uuid

import redis

from ...application.ports.rate_limiter import RateLimiter


class RedisRateLimiter(RateLimiter):
    """Sliding window limiter shared between workers through a Redis sorted set."""

    def __init__(self, url: str, prefix: str = "clinic:rl:") -> None:
        self.client = redis.Redis.from_url(url)
        self.prefix = prefix

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        rk = f"{self.prefix}{key}"
        now = time.time()
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(rk, 0, now - window_seconds)
        pipe.zadd(rk, {uuid.uuid4().hex: now})
        pipe.zcard(rk)
        pipe.expire(rk, window_seconds)
        _, _, count, _ = pipe.execute()
        return int(count) <= int(max_requests)
