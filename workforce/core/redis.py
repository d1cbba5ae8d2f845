"""
Redis/Valkey client configuration.

Follows Layer 5 rules:
- All configuration from centralized settings (config.py)
- Never use os.getenv directly

The client is created and closed by the application lifespan (main.py) and
handed to CacheStore; nothing imports a module-level connection.
"""
from __future__ import annotations
import redis.asyncio as aioredis
from workforce.core.config import Settings


def create_redis(settings: Settings) -> aioredis.Redis:
    kwargs = {}
    if settings.redis_ssl:
        kwargs["ssl"] = True
        kwargs["ssl_cert_reqs"] = None  # DO Valkey uses TLS without client cert; avoids CA failure
    return aioredis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        password=settings.REDIS_PASSWORD,
        decode_responses=True,
        socket_keepalive=True,
        **kwargs,
    )
