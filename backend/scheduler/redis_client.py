# backend/scheduler/redis_client.py
"""
Shared Redis connection.

Redis is optional: without REDIS_URL the advisory slot lock and the
event emitter are disabled and `redis_client` is None.
"""

import redis

from .config import settings

redis_client: redis.Redis | None = (
    redis.from_url(settings.redis_url, decode_responses=True)
    if settings.redis_url
    else None
)
