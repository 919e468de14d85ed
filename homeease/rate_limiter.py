"""
Redis fixed-window rate limiting
Fails open: when Redis is unreachable requests are allowed and a warning is logged
"""

import logging
import os
import time
from typing import Optional

import redis
from fastapi import HTTPException, Request

from . import config

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# After a failed connection, wait this long before trying Redis again
RECONNECT_BACKOFF_SECONDS = 60
_last_connect_failure = 0.0


def get_redis_client() -> Optional[redis.Redis]:
    """Get or create the Redis client, or None while Redis is unavailable"""
    global redis_client, _last_connect_failure

    if redis_client is not None:
        return redis_client

    if time.time() - _last_connect_failure < RECONNECT_BACKOFF_SECONDS:
        return None

    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    masked_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info(f"🔄 Initializing Redis connection for rate limiting: {masked_url}")

    try:
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
    except redis.RedisError as e:
        _last_connect_failure = time.time()
        logger.error(f"❌ Failed to connect to Redis: {e}")
        logger.warning("⚠️ Rate limiting disabled until Redis is reachable (fail-open mode)")
        return None

    redis_client = client
    logger.info("✅ Redis connected for rate limiting")
    return redis_client


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """
    Count one request against a fixed window.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    pipe = client.pipeline()
    pipe.incr(key)
    pipe.ttl(key)
    count, ttl = pipe.execute()

    if ttl is None or ttl < 0:
        client.expire(key, window_seconds)
        ttl = window_seconds

    return count <= limit, count, ttl


def _client_key(request: Request, key_prefix: str) -> str:
    client_ip = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    return f"{key_prefix}:{client_ip}"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency

    Example usage:
        booking_rate_limit = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="bookings")

        @router.post("")
        async def create_booking(data: BookingCreate, _: None = Depends(booking_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request) -> None:
        if not config.RATE_LIMIT_ENABLED:
            return

        client = get_redis_client()
        if client is None:
            return

        key = _client_key(request, key_prefix)
        try:
            is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Rate limit check failed for {key}, allowing request: {e}")
            return

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter


booking_rate_limit = create_rate_limiter(
    limit=config.BOOKING_RATE_LIMIT_PER_HOUR, window_seconds=3600, key_prefix="bookings"
)
review_rate_limit = create_rate_limiter(
    limit=config.REVIEW_RATE_LIMIT_PER_HOUR, window_seconds=3600, key_prefix="reviews"
)
