# src/session/backend_factory.py — v1
"""Factory for session backend instantiation."""

from __future__ import annotations

from receiptscan.config.settings import Settings
from receiptscan.session.base_session_backend import BaseSessionBackend


def create_session_backend(settings: Settings | None = None) -> BaseSessionBackend:
    """Instantiate the configured session backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseSessionBackend implementation.
    """
    backend = "memory" if settings is None else settings.session_backend

    if backend == "memory":
        from receiptscan.session.memory_backend import MemorySessionBackend
        return MemorySessionBackend()

    if backend == "json":
        from receiptscan.session.json_backend import JsonSessionBackend
        return JsonSessionBackend(root=settings.session_root)

    if backend == "sqlite":
        from receiptscan.session.sqlite_backend import SqliteSessionBackend
        return SqliteSessionBackend(
            db_path=settings.session_root.expanduser() / "sessions.db"
        )

    if backend == "redis":
        from receiptscan.session.redis_backend import RedisSessionBackend
        if not settings.session_redis_url:
            raise ValueError(
                "SESSION_REDIS_URL must be set when SESSION_BACKEND=redis"
            )
        return RedisSessionBackend(
            redis_url=settings.session_redis_url,
            ttl_ms=settings.session_ttl_ms,
        )

    raise ValueError(f"Unsupported session backend: {backend!r}")
