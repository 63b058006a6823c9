# src/session/redis_backend.py — v1
"""Redis session backend (SESSION_BACKEND=redis).

Requires 'redis' package: pip install redis.
Keys are written with a server-side expiry equal to the session TTL, so
abandoned sessions disappear even if nobody restores them.
"""

from __future__ import annotations

import logging

from receiptscan.session.base_session_backend import BaseSessionBackend

logger = logging.getLogger(__name__)


class RedisSessionBackend(BaseSessionBackend):
    """Redis-backed session storage for multi-instance deployments."""

    def __init__(self, redis_url: str, ttl_ms: int | None = None) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._ttl_ms = ttl_ms

    async def load(self, key: str) -> str | None:
        return self._client.get(key)

    async def save(self, key: str, payload: str) -> None:
        if self._ttl_ms:
            self._client.set(key, payload, px=self._ttl_ms)
        else:
            self._client.set(key, payload)

    async def delete(self, key: str) -> None:
        self._client.delete(key)

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
