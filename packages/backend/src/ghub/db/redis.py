"""Redis-backed request counters.

Learn: Redis holds nothing but short-lived per-IP counters, one per
client, bucket and minute. It is optional: startup tries init_redis()
once, and while no client is connected get_redis() raises RuntimeError,
which callers read as "counting disabled".
"""

import time
from typing import Optional

import redis.asyncio as aioredis

from ghub.config import settings

KEY_PREFIX = "ghub:rl"
WINDOW_SECONDS = 60

_client: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Connect and ping. Only a client that answered becomes the shared one."""
    global _client
    client = aioredis.from_url(url or settings.redis_url, decode_responses=True)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _client = client
    return client


async def close_redis() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()


def get_redis() -> aioredis.Redis:
    if _client is None:
        raise RuntimeError("Redis is not connected")
    return _client


def window_key(client_ip: str, bucket: str, now: Optional[float] = None) -> str:
    """Counter key for the fixed window containing `now`."""
    minute = int((time.time() if now is None else now) // WINDOW_SECONDS)
    return f"{KEY_PREFIX}:{client_ip}:{bucket}:{minute}"


async def count_hit(redis: aioredis.Redis, key: str) -> int:
    """Increment a window counter; the first hit in a window sets its expiry."""
    count = await redis.incr(key)
    if count == 1:
        # one window of slack so a late reader never sees a half-expired key
        await redis.expire(key, WINDOW_SECONDS * 2)
    return count
