"""Settle-all join for concurrent teardown actions.

``asyncio.gather`` stops reporting at the first exception; ``settle`` waits
for every action and turns each result into an Outcome, so one failing backend
never hides the others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any

from shortlink.models.contracts import Outcome

Action = tuple[str, Awaitable[Any]]


async def noop() -> None:
    return None


async def _capture(label: str, aw: Awaitable[Any]) -> Outcome:
    try:
        value = await aw
    except Exception as exc:
        return Outcome.rejected(label, exc)
    return Outcome.fulfilled(label, value)


async def settle(actions: Iterable[Action]) -> list[Outcome]:
    """Run labelled actions concurrently; return their outcomes in input order."""
    return list(await asyncio.gather(*(_capture(label, aw) for label, aw in actions)))
