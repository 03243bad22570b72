"""Custom domain teardown — cache hash, proxied images, and the domain row."""

from __future__ import annotations

import structlog

from shortlink.models.contracts import Outcome
from shortlink.teardown.outcomes import Action, settle
from shortlink.teardown.queries import delete_domain_by_slug, find_domain_links
from shortlink.utils.cache import delete_namespace
from shortlink.utils.r2 import delete_object_async

logger = structlog.get_logger()


async def delete_domain_and_links(
    slug: str, *, skip_relational_delete: bool = False
) -> list[Outcome]:
    """Tear down a custom domain and all of its links.

    Pass ``skip_relational_delete=True`` when the owning project row is about
    to be deleted; the FK cascade removes the domain and link rows then.
    Failures are captured in the returned outcomes and never raised, except
    for the initial link lookup.
    """
    links = await find_domain_links(slug)

    actions: list[Action] = [(f"cache:{slug}", delete_namespace(slug))]
    actions += [
        (f"storage:{link.domain}/{link.key}", delete_object_async(f"{link.domain}/{link.key}"))
        for link in links
        if link.proxy
    ]
    if not skip_relational_delete:
        actions.append((f"db:domain:{slug}", delete_domain_by_slug(slug)))

    outcomes = await settle(actions)
    failed = [o for o in outcomes if not o.ok]
    logger.info(
        "domain_teardown_complete",
        domain=slug,
        links=len(links),
        actions=len(outcomes),
        failed=len(failed),
    )
    return outcomes
