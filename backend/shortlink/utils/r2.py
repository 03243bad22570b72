"""Cloudflare R2 client wrapper — S3-compatible object storage.

Holds link preview images and project logos. Storage key convention:
    {domain}/{key}        proxied link image
    logos/{project_id}    project logo
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import ClientError

from shortlink.config import settings

logger = structlog.get_logger()

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _build_client() -> Any:
    """Create an S3 client pointed at Cloudflare R2."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


_client: Any = None
# delete_object_async runs in worker threads; boto3 client creation is not thread-safe.
_client_lock = threading.Lock()


def _get_client() -> Any:
    """Lazy-init singleton client."""
    global _client  # noqa: PLW0603
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = _build_client()
    return _client


def reset_client() -> None:
    """Reset the singleton client (for testing)."""
    global _client  # noqa: PLW0603
    _client = None


def delete_object(key: str) -> bool:
    """Delete a single object from R2.

    Returns False when the object was already gone; a missing object counts
    as a successful delete. Any other ClientError is logged and re-raised.
    """
    client = _get_client()
    try:
        client.delete_object(Bucket=settings.r2_bucket_name, Key=key)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
            logger.info("r2_delete_missing", key=key)
            return False
        logger.error("r2_delete_failed", key=key, error=str(e))
        raise
    logger.info("r2_delete", key=key)
    return True


async def delete_object_async(key: str) -> bool:
    """Run delete_object off the event loop; boto3 is blocking."""
    return await asyncio.to_thread(delete_object, key)
