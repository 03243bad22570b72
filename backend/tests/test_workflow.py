"""Tests for ProjectDeletionWorkflow against a time-skipping Temporal test server.

The real activity is replaced by stand-ins registered under the same activity
name, so no database or storage is touched.
"""

from __future__ import annotations

import uuid

import pytest
from temporalio import activity
from temporalio.client import WorkflowFailureError
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from shortlink.models.contracts import (
    DeleteProjectInput,
    Outcome,
    ProjectDeletionResult,
    ProjectRef,
)
from shortlink.workflows.project_deletion import ProjectDeletionWorkflow, workflow_id_for

_attempts: list[DeleteProjectInput] = []


@activity.defn(name="delete_project")
async def fake_delete_project(input: DeleteProjectInput) -> ProjectDeletionResult:
    _attempts.append(input)
    return ProjectDeletionResult(
        cleanup_outcomes=[Outcome.fulfilled("domain:d1", [])],
        teardown_outcomes=[Outcome.fulfilled("db:project", {"slug": input.project.slug})],
    )


@activity.defn(name="delete_project")
async def failing_delete_project(input: DeleteProjectInput) -> ProjectDeletionResult:
    _attempts.append(input)
    raise RuntimeError("pg down")


@pytest.fixture(autouse=True)
def _clear_attempts():
    _attempts.clear()
    yield
    _attempts.clear()


def _input(admin: bool = False) -> DeleteProjectInput:
    return DeleteProjectInput(project=ProjectRef(id=uuid.uuid4(), slug="acme"), admin=admin)


def test_workflow_id_for() -> None:
    assert workflow_id_for("abc") == "delete-abc"


@pytest.mark.asyncio
async def test_returns_activity_result() -> None:
    payload = _input(admin=True)
    task_queue = f"test-{uuid.uuid4()}"
    async with await WorkflowEnvironment.start_time_skipping(
        data_converter=pydantic_data_converter,
    ) as env:
        async with Worker(
            env.client,
            task_queue=task_queue,
            workflows=[ProjectDeletionWorkflow],
            activities=[fake_delete_project],
        ):
            result = await env.client.execute_workflow(
                ProjectDeletionWorkflow.run,
                payload,
                id=workflow_id_for(str(payload.project.id)),
                task_queue=task_queue,
            )

    assert isinstance(result, ProjectDeletionResult)
    assert result.teardown_outcomes[0].value == {"slug": "acme"}
    assert [a.admin for a in _attempts] == [True]


@pytest.mark.asyncio
async def test_activity_failure_is_not_retried() -> None:
    payload = _input()
    task_queue = f"test-{uuid.uuid4()}"
    async with await WorkflowEnvironment.start_time_skipping(
        data_converter=pydantic_data_converter,
    ) as env:
        async with Worker(
            env.client,
            task_queue=task_queue,
            workflows=[ProjectDeletionWorkflow],
            activities=[failing_delete_project],
        ):
            with pytest.raises(WorkflowFailureError):
                await env.client.execute_workflow(
                    ProjectDeletionWorkflow.run,
                    payload,
                    id=workflow_id_for(str(payload.project.id)),
                    task_queue=task_queue,
                )

    assert len(_attempts) == 1
