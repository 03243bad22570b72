"""Redis link-resolution cache.

Each domain has one hash named after the domain; fields are lower-cased link
keys. Removing a project's links from the cache is one HDEL per domain.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
import structlog

from shortlink.config import settings

logger = structlog.get_logger()


def _build_client() -> Any:
    return aioredis.from_url(settings.redis_url, decode_responses=True)


_client: Any = None


def _get_client() -> Any:
    """Lazy-init singleton client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = _build_client()
    return _client


def reset_client() -> None:
    """Reset the singleton client (for testing)."""
    global _client  # noqa: PLW0603
    _client = None


async def close_client() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


async def remove_keys(domain: str, keys: list[str]) -> int:
    """HDEL ``keys`` from the domain's hash in a single round trip.

    Returns the number of fields actually removed. Repeated keys are harmless.
    """
    if not keys:
        return 0
    removed: int = await _get_client().hdel(domain, *keys)
    logger.info("cache_remove_keys", domain=domain, requested=len(keys), removed=removed)
    return removed


async def delete_namespace(domain: str) -> int:
    """Drop a domain's whole hash. Returns 1 if it existed, else 0."""
    deleted: int = await _get_client().delete(domain.lower())
    logger.info("cache_delete_namespace", domain=domain, deleted=deleted)
    return deleted
