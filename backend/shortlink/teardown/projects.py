"""Project teardown across Postgres, Redis, R2 and Stripe.

There is no shared transaction between these backends, so deletion runs in
three strictly ordered phases:

1. Discovery: custom domains and default-domain links, read concurrently.
   Any failure here aborts the whole operation before anything is removed.
2. Cleanup: domain teardown, cache HDELs and image deletes run as one
   settled batch. A failing action is recorded and never stops the others.
3. Final teardown: logo, subscription and the project row, settled together.
   The project row goes last so that a failure in an earlier phase never
   leaves children whose parent row is already gone. A failed row delete is
   re-raised once the logo and billing actions have finished.

The admin variant moves default-domain links to the legal holding project
instead of deleting them, so their cache entries and images stay in place.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import structlog

from shortlink.config import settings
from shortlink.models.contracts import Outcome, ProjectDeletionResult, ProjectRef
from shortlink.teardown.domains import delete_domain_and_links
from shortlink.teardown.outcomes import Action, noop, settle
from shortlink.teardown.queries import (
    LinkRef,
    delete_project_by_slug,
    find_default_domain_links,
    find_domain_slugs,
    reassign_default_domain_links,
)
from shortlink.utils.billing import cancel_subscription
from shortlink.utils.cache import remove_keys
from shortlink.utils.r2 import delete_object_async

logger = structlog.get_logger()

PROJECT_ROW_ACTION = "db:project"


def group_cache_keys(links: Iterable[LinkRef]) -> dict[str, list[str]]:
    """Map each domain to the lower-cased, de-duplicated keys of its links."""
    grouped: dict[str, dict[str, None]] = {}
    for link in links:
        grouped.setdefault(link.domain, {})[link.key.lower()] = None
    return {domain: list(keys) for domain, keys in grouped.items()}


def _domain_actions(slugs: list[str]) -> list[Action]:
    # The project row delete cascades to these domain rows.
    return [
        (f"domain:{slug}", delete_domain_and_links(slug, skip_relational_delete=True))
        for slug in slugs
    ]


def _link_actions(links: list[LinkRef]) -> list[Action]:
    actions: list[Action] = [
        (f"cache:{domain}", remove_keys(domain, keys))
        for domain, keys in group_cache_keys(links).items()
    ]
    for link in links:
        key = f"{link.domain}/{link.key}"
        actions.append((f"storage:{key}", delete_object_async(key) if link.proxy else noop()))
    return actions


async def _final_teardown(project: ProjectRef) -> list[Outcome]:
    logo_key = f"logos/{project.id}"
    outcomes = await settle(
        [
            ("storage:logo", delete_object_async(logo_key) if project.logo else noop()),
            (
                "billing:subscription",
                cancel_subscription(project.stripe_id) if project.stripe_id else noop(),
            ),
            (PROJECT_ROW_ACTION, delete_project_by_slug(project.slug)),
        ]
    )
    _log_failures(project, "teardown", outcomes)
    row = outcomes[-1]
    if row.error is not None:
        logger.error(
            "project_row_delete_failed",
            project_id=str(project.id),
            slug=project.slug,
            error_type=row.error_type,
            exc_info=row.error,
        )
        raise row.error
    return outcomes


async def _run(project: ProjectRef, cleanup: list[Action], *, admin: bool) -> ProjectDeletionResult:
    cleanup_outcomes = await settle(cleanup)
    _log_failures(project, "cleanup", cleanup_outcomes)

    teardown_outcomes = await _final_teardown(project)

    result = ProjectDeletionResult(
        cleanup_outcomes=cleanup_outcomes, teardown_outcomes=teardown_outcomes
    )
    logger.info(
        "project_teardown_complete",
        project_id=str(project.id),
        slug=project.slug,
        admin=admin,
        failures=len(result.failures),
    )
    return result


def _log_failures(project: ProjectRef, phase: str, outcomes: list[Outcome]) -> None:
    for outcome in outcomes:
        if not outcome.ok:
            logger.warning(
                "teardown_action_failed",
                project_id=str(project.id),
                phase=phase,
                action=outcome.action,
                error_type=outcome.error_type,
                reason=outcome.reason,
                exc_info=outcome.error,
            )


async def delete_project(project: ProjectRef) -> ProjectDeletionResult:
    """Delete a project and everything it owns.

    Raises whatever discovery or the project row delete raised; every other
    failure is reported in the returned outcomes.
    """
    logger.info("project_teardown_start", project_id=str(project.id), slug=project.slug)
    domain_slugs, links = await asyncio.gather(
        find_domain_slugs(project.id),
        find_default_domain_links(project.id, settings.default_domains),
    )
    return await _run(project, _domain_actions(domain_slugs) + _link_actions(links), admin=False)


async def delete_project_admin(project: ProjectRef) -> ProjectDeletionResult:
    """Delete a project, keeping its default-domain links under legal hold."""
    logger.info("project_admin_teardown_start", project_id=str(project.id), slug=project.slug)
    domain_slugs, _ = await asyncio.gather(
        find_domain_slugs(project.id),
        reassign_default_domain_links(
            project.id,
            settings.default_domains,
            new_user_id=settings.legal_user_id,
            new_project_id=settings.legal_project_id,
        ),
    )
    return await _run(project, _domain_actions(domain_slugs), admin=True)
