"""
Redis client for cart persistence and event streams.

Provides a singleton Upstash Redis client (sync: cart operations run to
completion without suspension) plus key naming helpers.
"""

import os
from typing import Optional

from upstash_redis import Redis

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

_redis_client: Optional[Redis] = None


def get_redis() -> Redis:
    """
    Get Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN

    Used for:
    - Cart state blobs
    - Active instance selector
    - Cart event streams
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class RedisKeys:
    """Redis key prefixes for cart data."""

    CART = "cart:"  # cart:{instance}
    INSTANCE = "cart:instance"  # active instance selector
    EVENTS = "stream:cart:"  # stream:cart:{instance}

    @staticmethod
    def cart_key(instance: str, prefix: str = CART) -> str:
        return f"{prefix}{instance}"

    @staticmethod
    def events_key(instance: str) -> str:
        return f"{RedisKeys.EVENTS}{instance}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    CART = 86400  # 24 hours
