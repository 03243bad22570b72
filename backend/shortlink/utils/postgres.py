"""asyncpg connection pool shared by teardown queries.

A pool (not a single connection) so discovery queries can run concurrently.
"""

from __future__ import annotations

import asyncio

import asyncpg
import structlog

from shortlink.config import settings

logger = structlog.get_logger()

_pool: asyncpg.Pool | None = None
# Serializes first-time creation; concurrent callers must share one pool.
_pool_lock = asyncio.Lock()


def _pg_dsn() -> str:
    """Convert SQLAlchemy-style URL to plain PostgreSQL DSN for asyncpg."""
    return settings.database_url.replace("postgresql+asyncpg://", "postgresql://")


async def get_pool() -> asyncpg.Pool:
    """Lazy-init singleton pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        return _pool
    async with _pool_lock:
        if _pool is None:
            _pool = await asyncpg.create_pool(
                dsn=_pg_dsn(),
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
            )
            logger.info("pg_pool_created", max_size=settings.db_pool_max_size)
    return _pool


async def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("pg_pool_closed")


def reset_pool() -> None:
    """Forget the singleton pool without closing it (for testing)."""
    global _pool, _pool_lock  # noqa: PLW0603
    _pool = None
    # A fresh lock, since the old one may be bound to a closed event loop
    _pool_lock = asyncio.Lock()
