"""
Sliding-window rate limiting.

Every attempt is recorded with its timestamp; an attempt is allowed while fewer than
`limit` attempts fall inside the trailing `window_seconds`. Two windows are provided:
a Redis sorted-set window shared by every worker, and an in-memory window for tests
and single-process local runs.

The limiter fails open: if the backing store raises, the request is allowed.
"""

import math
import time
import uuid
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.platform.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    # whole seconds until the oldest counted attempt leaves the window; 0 when allowed
    retry_after: int = 0


def _seconds_until(reset_at: float, now: float) -> int:
    return max(math.ceil(reset_at - now), 1)


class InMemorySlidingWindow:
    def __init__(self, clock: Callable[[], float] = time.time):
        self._requests: Dict[str, List[float]] = {}
        self._lock = Lock()
        self._clock = clock
        self._last_sweep = clock()

    def _sweep(self, cutoff: float) -> None:
        # Drop keys whose newest attempt has left the window
        for key in [k for k, ts in self._requests.items() if not ts or ts[-1] <= cutoff]:
            del self._requests[key]

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        cutoff = now - window_seconds
        with self._lock:
            if now - self._last_sweep >= window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            # Remove old timestamps outside window
            timestamps = [ts for ts in self._requests.pop(key, []) if ts > cutoff]
            if len(timestamps) >= limit:
                self._requests[key] = timestamps
                reset_at = timestamps[0] + window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=_seconds_until(reset_at, now),
                )
            timestamps.append(now)
            self._requests[key] = timestamps
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - len(timestamps),
                reset_at=timestamps[0] + window_seconds,
            )


# Trim, count, conditionally record and read the oldest score in one atomic step,
# so concurrent workers cannot both take the last slot.
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])

redis.call('ZREMRANGEBYSCORE', key, 0, now - window)
local count = redis.call('ZCARD', key)
local allowed = 0
if count < limit then
    redis.call('ZADD', key, ARGV[1], ARGV[4])
    count = count + 1
    allowed = 1
end
redis.call('EXPIRE', key, window)

local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
local oldest_score = ARGV[1]
if oldest[2] then
    oldest_score = oldest[2]
end
return {allowed, count, oldest_score}
"""


class RedisSlidingWindow:
    def __init__(self, redis: Redis, prefix: str = "rl:waitlist", clock: Callable[[], float] = time.time):
        self.redis = redis
        self.prefix = prefix
        self._clock = clock
        self._script = redis.register_script(SLIDING_WINDOW_SCRIPT)

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        redis_key = f"{self.prefix}:{key}"
        member = f"{now}:{uuid.uuid4().hex}"

        allowed, count, oldest_score = await self._script(
            keys=[redis_key], args=[now, window_seconds, limit, member]
        )
        reset_at = float(oldest_score) + window_seconds

        if not allowed:
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_at=reset_at,
                retry_after=_seconds_until(reset_at, now),
            )

        return RateLimitResult(
            allowed=True, limit=limit, remaining=limit - int(count), reset_at=reset_at
        )


class SlidingWindowRateLimiter:
    """
    Fixed quota per key over a trailing window.

    Args:
        window: InMemorySlidingWindow or RedisSlidingWindow
        limit: attempts allowed per window
        window_seconds: window length
        whitelist: keys that are never limited
    """

    def __init__(
        self,
        window,
        limit: int = 15,
        window_seconds: int = 3600,
        whitelist: Optional[List[str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.window = window
        self.limit = limit
        self.window_seconds = window_seconds
        self.whitelist = set(whitelist or [])
        self._clock = clock

    async def check(self, key: str) -> RateLimitResult:
        if key in self.whitelist:
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=self.limit,
                reset_at=self._clock() + self.window_seconds,
            )

        try:
            result = await self.window.hit(key, self.limit, self.window_seconds)
        except (RedisError, OSError) as e:
            logger.error(f"Rate limiting error, proceeding anyway: {e}")
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=1,
                reset_at=self._clock() + self.window_seconds,
            )

        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {key}")
        return result


def create_rate_limiter(settings, redis: Optional[Redis] = None) -> SlidingWindowRateLimiter:
    if redis is not None and not settings.FORCE_IN_MEMORY_RATE_LIMITER:
        window = RedisSlidingWindow(redis)
    else:
        if settings.ENVIRONMENT == "production":
            logger.warning("No Redis configured, rate limiting is per process")
        window = InMemorySlidingWindow()

    return SlidingWindowRateLimiter(
        window,
        limit=settings.RATE_LIMIT_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        whitelist=settings.WHITELIST_IPS,
    )
