"""ProjectDeletionWorkflow — one instance per project deletion request.

Nothing in this package starts the workflow. Callers pass
``id=workflow_id_for(project_id)`` to ``Client.start_workflow`` so that duplicate
requests for the same project collapse onto one run.
"""

from __future__ import annotations

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from shortlink.activities.teardown import delete_project_activity
    from shortlink.models.contracts import DeleteProjectInput, ProjectDeletionResult


# Teardown is not idempotent across backends; a failed run is surfaced, never retried.
_DELETE_RETRY = RetryPolicy(maximum_attempts=1)
_DELETE_TIMEOUT = timedelta(minutes=10)


def workflow_id_for(project_id: str) -> str:
    """Workflow ID for callers starting a deletion of ``project_id``."""
    return f"delete-{project_id}"


@workflow.defn
class ProjectDeletionWorkflow:
    @workflow.run
    async def run(self, input: DeleteProjectInput) -> ProjectDeletionResult:
        workflow.logger.info(
            "Deleting project %s (admin=%s)", input.project.slug, input.admin
        )
        return await workflow.execute_activity(
            delete_project_activity,
            input,
            start_to_close_timeout=_DELETE_TIMEOUT,
            retry_policy=_DELETE_RETRY,
        )
