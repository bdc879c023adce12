"""Shared Redis client for transient portal state (builder drafts)"""

import redis

from community_portal.config import config

REDIS_URL = config["redis_url"]

if not REDIS_URL:
    raise ValueError(
        "REDIS_URL environment variable is not set. "
        "Set REDIS_URL in the deployment environment or local .env file."
    )

# Created once; connections are opened lazily from the pool
redis_client = redis.from_url(
    REDIS_URL,
    decode_responses=True,
    max_connections=20,
    socket_connect_timeout=5,
    socket_keepalive=True,
    retry_on_timeout=True,
)


def get_redis() -> redis.Redis:
    """Get Redis client"""
    return redis_client
