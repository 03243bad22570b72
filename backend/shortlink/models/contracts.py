"""Teardown contract models.

These cross the Temporal boundary (pydantic data converter), so every field
must be JSON-serializable. A captured exception is flattened to ``error_type``
and ``reason``; the live exception object stays in-process only.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, PrivateAttr


class ProjectRef(BaseModel):
    """The projection of a project row that teardown needs."""

    id: uuid.UUID
    slug: str
    stripe_id: str | None = None
    logo: str | None = None


class Outcome(BaseModel):
    """Settled result of one concurrent teardown action."""

    action: str
    status: Literal["fulfilled", "rejected"]
    value: Any = None
    reason: str | None = None
    error_type: str | None = None

    # Live exception, in-process only; not serialized
    _error: BaseException | None = PrivateAttr(default=None)

    @classmethod
    def fulfilled(cls, action: str, value: Any = None) -> Outcome:
        return cls(action=action, status="fulfilled", value=value)

    @classmethod
    def rejected(cls, action: str, exc: BaseException) -> Outcome:
        outcome = cls(
            action=action,
            status="rejected",
            reason=str(exc) or repr(exc),
            error_type=type(exc).__name__,
        )
        outcome._error = exc
        return outcome

    @property
    def ok(self) -> bool:
        return self.status == "fulfilled"

    @property
    def error(self) -> BaseException | None:
        return self._error


class ProjectDeletionResult(BaseModel):
    cleanup_outcomes: list[Outcome] = []
    teardown_outcomes: list[Outcome] = []

    @property
    def failures(self) -> list[Outcome]:
        """Rejected outcomes from both phases, cleanup first."""
        return [o for o in (*self.cleanup_outcomes, *self.teardown_outcomes) if not o.ok]


class DeleteProjectInput(BaseModel):
    project: ProjectRef
    # Reassign default-domain links to the legal holding project instead of deleting them
    admin: bool = False
