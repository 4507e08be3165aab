# app/utils/rate_limit.py
"""
Sliding window rate limiter (Redis preferred, in-memory fallback) + FastAPI dependencies
"""

import time
import uuid
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, Dict, Optional, Tuple

import redis.asyncio as redis
from fastapi import HTTPException, Request
from redis.exceptions import RedisError

from app.config import settings
from app.services.audit_service import audit_service
from app.utils.logger import logger

# how often the in-memory fallback drops buckets whose window has passed
SWEEP_INTERVAL_SECONDS = 60


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int


class RateLimiter:
    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis = redis_client
        self._lock = Lock()
        # key -> (window_seconds, hit timestamps)
        self._buckets: Dict[str, Tuple[int, Deque[float]]] = {}
        self._last_sweep = 0.0

    async def allow(self, *, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        limit = int(limit)
        window_seconds = int(window_seconds)
        if limit <= 0 or window_seconds <= 0:
            return RateLimitResult(allowed=True, retry_after_seconds=0)

        if self.redis is not None:
            try:
                return await self._allow_redis(key, limit, window_seconds)
            except (RedisError, OSError) as e:
                logger.warning(f"⚠️ Redis rate limit unavailable, using memory: {e}")

        return self._allow_memory(key, limit, window_seconds)

    async def _allow_redis(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        redis_key = f"rate_limit:{key}"
        now = time.time()

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - window_seconds)
        pipe.zcard(redis_key)
        pipe.zrange(redis_key, 0, 0, withscores=True)
        pipe.expire(redis_key, window_seconds)
        _, current, oldest, _ = await pipe.execute()

        if int(current) < limit:
            await self.redis.zadd(redis_key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
            await self.redis.expire(redis_key, window_seconds)
            return RateLimitResult(allowed=True, retry_after_seconds=0)

        oldest_at = float(oldest[0][1]) if oldest else now
        retry_after = int(oldest_at + window_seconds - now)
        return RateLimitResult(allowed=False, retry_after_seconds=max(1, retry_after))

    def _allow_memory(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = time.time()
        with self._lock:
            self._sweep(now)

            _, bucket = self._buckets.setdefault(key, (window_seconds, deque()))
            cutoff = now - window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) < limit:
                bucket.append(now)
                return RateLimitResult(allowed=True, retry_after_seconds=0)
            retry_after = int((bucket[0] + window_seconds) - now)
            return RateLimitResult(allowed=False, retry_after_seconds=max(1, retry_after))

    def _sweep(self, now: float):
        """Drop buckets whose newest hit is already outside their window. Caller holds the lock."""
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        expired = [
            key for key, (window, bucket) in self._buckets.items()
            if not bucket or bucket[-1] <= now - window
        ]
        for key in expired:
            del self._buckets[key]

    @property
    def tracked_keys(self) -> int:
        return len(self._buckets)

    def reset(self):
        with self._lock:
            self._buckets.clear()
            self._last_sweep = 0.0


def _build_redis_client() -> Optional[redis.Redis]:
    if not settings.redis_url:
        return None
    return redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )


default_rate_limiter = RateLimiter(_build_redis_client())


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def _enforce(request: Request, scope: str, limit: int, window_seconds: int, message: str):
    ip = client_ip(request)
    result = await default_rate_limiter.allow(key=f"{scope}:{ip}", limit=limit, window_seconds=window_seconds)
    if result.allowed:
        return
    logger.warning(f"🚫 Rate limit exceeded: scope={scope}")
    await audit_service.log_rate_limit_violation(ip, scope, request.url.path)
    raise HTTPException(
        status_code=429,
        detail={"message": message, "error": "RATE_LIMIT_EXCEEDED", "retryAfter": result.retry_after_seconds},
        headers={"Retry-After": str(result.retry_after_seconds)},
    )


async def token_access_limit(request: Request):
    await _enforce(
        request,
        "token_access",
        settings.token_access_limit,
        settings.token_access_window_seconds,
        "Too many requests. Please try again later.",
    )


async def token_regenerate_limit(request: Request):
    await _enforce(
        request,
        "token_regenerate",
        settings.token_regenerate_limit,
        settings.token_regenerate_window_seconds,
        "Too many token regeneration requests. Please try again later.",
    )
