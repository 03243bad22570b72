"""Tests for the delete_project Temporal activity wrapper."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from temporalio.exceptions import ApplicationError

from shortlink.activities.teardown import delete_project_activity
from shortlink.models.contracts import (
    DeleteProjectInput,
    Outcome,
    ProjectDeletionResult,
    ProjectRef,
)
from shortlink.teardown.queries import ProjectNotFoundError

_MODULE = "shortlink.activities.teardown"


def _input(admin: bool = False) -> DeleteProjectInput:
    return DeleteProjectInput(project=ProjectRef(id=uuid.uuid4(), slug="acme"), admin=admin)


class TestDeleteProjectActivity:
    @pytest.mark.asyncio
    @patch(f"{_MODULE}.delete_project_admin", new_callable=AsyncMock)
    @patch(f"{_MODULE}.delete_project", new_callable=AsyncMock)
    async def test_normal_variant(self, mock_delete: AsyncMock, mock_admin: AsyncMock) -> None:
        expected = ProjectDeletionResult(
            teardown_outcomes=[Outcome.fulfilled("db:project", {"slug": "acme"})]
        )
        mock_delete.return_value = expected
        payload = _input()

        result = await delete_project_activity(payload)

        assert result is expected
        mock_delete.assert_awaited_once_with(payload.project)
        mock_admin.assert_not_called()

    @pytest.mark.asyncio
    @patch(f"{_MODULE}.delete_project_admin", new_callable=AsyncMock)
    @patch(f"{_MODULE}.delete_project", new_callable=AsyncMock)
    async def test_admin_variant(self, mock_delete: AsyncMock, mock_admin: AsyncMock) -> None:
        mock_admin.return_value = ProjectDeletionResult()
        payload = _input(admin=True)

        await delete_project_activity(payload)

        mock_admin.assert_awaited_once_with(payload.project)
        mock_delete.assert_not_called()

    @pytest.mark.asyncio
    @patch(f"{_MODULE}.delete_project", new_callable=AsyncMock)
    async def test_missing_project_is_non_retryable(self, mock_delete: AsyncMock) -> None:
        mock_delete.side_effect = ProjectNotFoundError("Project 'acme' not found")

        with pytest.raises(ApplicationError) as exc_info:
            await delete_project_activity(_input())

        assert exc_info.value.non_retryable
        assert exc_info.value.type == "ProjectNotFound"

    @pytest.mark.asyncio
    @patch(f"{_MODULE}.delete_project", new_callable=AsyncMock)
    async def test_other_errors_propagate(self, mock_delete: AsyncMock) -> None:
        mock_delete.side_effect = ConnectionError("pg down")

        with pytest.raises(ConnectionError, match="pg down"):
            await delete_project_activity(_input())


class TestResultSerialization:
    """Results cross Temporal as JSON via the pydantic converter."""

    def test_round_trip_keeps_nested_outcomes(self) -> None:
        result = ProjectDeletionResult(
            cleanup_outcomes=[
                Outcome.fulfilled("domain:d1", [Outcome.fulfilled("cache:d1", 1)]),
                Outcome.rejected("storage:dub.sh/k", OSError("r2 gone")),
            ],
            teardown_outcomes=[Outcome.fulfilled("db:project", {"id": "p", "slug": "acme"})],
        )

        restored = ProjectDeletionResult.model_validate_json(result.model_dump_json())

        assert [o.action for o in restored.cleanup_outcomes] == ["domain:d1", "storage:dub.sh/k"]
        assert restored.cleanup_outcomes[0].value == [
            {
                "action": "cache:d1",
                "status": "fulfilled",
                "value": 1,
                "reason": None,
                "error_type": None,
            }
        ]
        [failure] = restored.failures
        assert failure.error_type == "OSError"
        assert failure.error is None
