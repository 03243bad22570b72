"""Temporal worker — hosts project deletion workflows and activities.

Run locally with:
    python -m shortlink.worker
"""

from __future__ import annotations

import asyncio
import sys

import structlog
from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.worker import Worker

from shortlink.activities.teardown import delete_project_activity
from shortlink.config import settings
from shortlink.logging import configure_logging
from shortlink.utils.cache import close_client
from shortlink.utils.postgres import close_pool
from shortlink.workflows.project_deletion import ProjectDeletionWorkflow

logger = structlog.get_logger()

ACTIVITIES = [delete_project_activity]

WORKFLOWS = [ProjectDeletionWorkflow]


async def create_temporal_client() -> Client:
    """Create a Temporal client using settings.

    Supports both local Temporal (plain TCP) and Temporal Cloud (TLS + API key).
    """
    if settings.temporal_api_key:
        return await Client.connect(
            target_host=settings.temporal_address,
            namespace=settings.temporal_namespace,
            tls=True,
            api_key=settings.temporal_api_key,
            data_converter=pydantic_data_converter,
        )
    return await Client.connect(
        target_host=settings.temporal_address,
        namespace=settings.temporal_namespace,
        data_converter=pydantic_data_converter,
    )


async def run_worker() -> None:
    """Connect to Temporal and run the worker until interrupted.

    The Postgres pool and Redis client are created lazily by the first
    activity and closed here on the way out.
    """
    logger.info(
        "worker_connecting",
        address=settings.temporal_address,
        namespace=settings.temporal_namespace,
        task_queue=settings.temporal_task_queue,
    )

    try:
        client = await create_temporal_client()
    except Exception:
        logger.exception(
            "worker_connection_failed",
            address=settings.temporal_address,
            namespace=settings.temporal_namespace,
        )
        raise

    worker = Worker(
        client,
        task_queue=settings.temporal_task_queue,
        workflows=WORKFLOWS,
        activities=ACTIVITIES,
    )
    logger.info(
        "worker_started",
        task_queue=settings.temporal_task_queue,
        default_domains=settings.default_domains,
    )

    try:
        await worker.run()
    finally:
        await close_pool()
        await close_client()
    logger.info("worker_stopped")


def main() -> None:
    """Entrypoint for `python -m shortlink.worker`."""
    configure_logging()
    try:
        asyncio.run(run_worker())
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("worker_fatal_error")
        sys.exit(1)


if __name__ == "__main__":
    main()
