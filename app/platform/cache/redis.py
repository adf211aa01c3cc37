from typing import Optional

from redis.asyncio import Redis


def create_redis(url: Optional[str]) -> Optional[Redis]:
    """Create a Redis client, or None when no URL is configured."""
    if not url:
        return None

    return Redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
    )
