"""Project deletion activities — thin Temporal wrappers over the orchestrator.

Started by ProjectDeletionWorkflow. The orchestrator already captures every
per-backend failure as an Outcome; only discovery errors and a failed project
row delete reach Temporal as activity failures.
"""

from __future__ import annotations

import structlog
from temporalio import activity
from temporalio.exceptions import ApplicationError

from shortlink.models.contracts import DeleteProjectInput, ProjectDeletionResult
from shortlink.teardown.projects import delete_project, delete_project_admin
from shortlink.teardown.queries import ProjectNotFoundError


@activity.defn(name="delete_project")
async def delete_project_activity(input: DeleteProjectInput) -> ProjectDeletionResult:
    """Run the teardown variant selected by ``input.admin``."""
    project = input.project
    structlog.contextvars.bind_contextvars(project_id=str(project.id), admin=input.admin)
    try:
        if input.admin:
            return await delete_project_admin(project)
        return await delete_project(project)
    except ProjectNotFoundError as exc:
        # Row already gone
        raise ApplicationError(str(exc), type="ProjectNotFound", non_retryable=True) from exc
    finally:
        structlog.contextvars.unbind_contextvars("project_id", "admin")
