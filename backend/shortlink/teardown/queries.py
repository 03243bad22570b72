"""Relational-store reads and writes used by project and domain teardown.

Plain SQL over the shared asyncpg pool. Child rows of a project are removed by
the ``ON DELETE CASCADE`` foreign keys on ``domains`` and ``links``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog

from shortlink.utils.postgres import get_pool

logger = structlog.get_logger()


class ProjectNotFoundError(LookupError):
    """No project row matched the slug being deleted."""


@dataclass(frozen=True)
class LinkRef:
    domain: str
    key: str
    proxy: bool


def _affected(status: str) -> int:
    """Row count from an asyncpg command tag such as ``UPDATE 3``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


async def find_domain_slugs(project_id: uuid.UUID) -> list[str]:
    pool = await get_pool()
    rows = await pool.fetch("SELECT slug FROM domains WHERE project_id = $1", project_id)
    return [row["slug"] for row in rows]


async def find_default_domain_links(project_id: uuid.UUID, domains: list[str]) -> list[LinkRef]:
    pool = await get_pool()
    rows = await pool.fetch(
        'SELECT domain, "key", proxy FROM links WHERE project_id = $1 AND domain = ANY($2::text[])',
        project_id,
        domains,
    )
    return [LinkRef(domain=row["domain"], key=row["key"], proxy=row["proxy"]) for row in rows]


async def reassign_default_domain_links(
    project_id: uuid.UUID,
    domains: list[str],
    *,
    new_user_id: uuid.UUID,
    new_project_id: uuid.UUID,
) -> int:
    """Move a project's default-domain links to another owner. Returns rows updated."""
    pool = await get_pool()
    status = await pool.execute(
        "UPDATE links SET user_id = $3, project_id = $4 "
        "WHERE project_id = $1 AND domain = ANY($2::text[])",
        project_id,
        domains,
        new_user_id,
        new_project_id,
    )
    updated = _affected(status)
    logger.info(
        "links_reassigned",
        project_id=str(project_id),
        new_project_id=str(new_project_id),
        updated=updated,
    )
    return updated


async def delete_project_by_slug(slug: str) -> dict[str, str]:
    """Delete a project row; its domains and links go with it via CASCADE.

    Raises:
        ProjectNotFoundError: when no project has this slug.
    """
    pool = await get_pool()
    row = await pool.fetchrow("DELETE FROM projects WHERE slug = $1 RETURNING id, slug", slug)
    if row is None:
        raise ProjectNotFoundError(f"Project {slug!r} not found")
    logger.info("project_row_deleted", slug=slug, project_id=str(row["id"]))
    return {"id": str(row["id"]), "slug": row["slug"]}


async def find_domain_links(domain: str) -> list[LinkRef]:
    pool = await get_pool()
    rows = await pool.fetch('SELECT domain, "key", proxy FROM links WHERE domain = $1', domain)
    return [LinkRef(domain=row["domain"], key=row["key"], proxy=row["proxy"]) for row in rows]


async def delete_domain_by_slug(slug: str) -> int:
    """Delete a custom domain row and every link under it in one transaction.

    Links reference the domain by hostname, not by FK, so they are removed
    explicitly. Returns the number of domain rows deleted (0 or 1).
    """
    pool = await get_pool()
    async with pool.acquire() as conn, conn.transaction():
        links_status = await conn.execute("DELETE FROM links WHERE domain = $1", slug)
        domain_status = await conn.execute("DELETE FROM domains WHERE slug = $1", slug)
    deleted = _affected(domain_status)
    logger.info(
        "domain_row_deleted", slug=slug, deleted=deleted, links_deleted=_affected(links_status)
    )
    return deleted
