"""SubtaskSequencer: assign positions to new and reordered subtasks.

Appends and reorders each run in a single store transaction that first locks
the parent task, so two concurrent appends to one task cannot read the same
maximum position, and a failed insert leaves no partial batch behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from taskbreakdown.errors import NotFoundError
from taskbreakdown.models import TaskStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from taskbreakdown.breakdown.schemas import SubtaskCandidate
    from taskbreakdown.models import Subtask
    from taskbreakdown.store import Store

logger = structlog.get_logger()


@dataclass(frozen=True)
class PlannedSubtask:
    """A candidate with its assigned position, ready to insert."""

    task_id: str
    title: str
    description: str | None
    order_index: int
    status: TaskStatus = TaskStatus.PENDING


def plan_append(task_id: str, existing_max_position: int, candidates: Sequence[SubtaskCandidate]) -> list[PlannedSubtask]:
    """Place *candidates* after ``existing_max_position`` in input order.

    ``existing_max_position`` is -1 for a task without subtasks, so the first
    candidate lands at 0.
    """
    if existing_max_position < -1:
        msg = f"existing_max_position must be >= -1, got {existing_max_position}"
        raise ValueError(msg)
    start = existing_max_position + 1
    return [
        PlannedSubtask(
            task_id=task_id,
            title=candidate.title,
            description=candidate.description or None,
            order_index=start + offset,
        )
        for offset, candidate in enumerate(candidates)
    ]


def plan_reorder(requested_ids: Sequence[str], current_ids: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split a client-supplied order into the ids to place first and the rest.

    Ids that do not belong to the task and repeats are dropped. The second
    list holds the task's unlisted subtasks in their current order; they
    follow the listed ones so positions stay unique.
    """
    owned = set(current_ids)
    listed: list[str] = []
    seen: set[str] = set()
    for subtask_id in requested_ids:
        if subtask_id in owned and subtask_id not in seen:
            listed.append(subtask_id)
            seen.add(subtask_id)
    remaining = [subtask_id for subtask_id in current_ids if subtask_id not in seen]
    return listed, remaining


class SubtaskSequencer:
    """Merges batches of subtasks into a task's ordered subtask list."""

    def __init__(self, store: Store) -> None:
        self._store = store

    async def append(self, task_id: str, candidates: Sequence[SubtaskCandidate]) -> list[Subtask]:
        """Persist *candidates* after the task's current last subtask, all or nothing."""
        async with self._store.transaction() as session:
            if not await session.lock_task(task_id):
                raise NotFoundError("task", task_id)
            existing_max = await session.max_order_index(task_id)
            created = [
                await session.insert_subtask(
                    planned.task_id,
                    planned.title,
                    planned.description,
                    planned.order_index,
                    str(planned.status),
                )
                for planned in plan_append(task_id, existing_max, candidates)
            ]

        logger.info("subtasks appended", task_id=task_id, count=len(created), first_position=existing_max + 1)
        return created

    async def reorder(self, task_id: str, subtask_ids: Sequence[str]) -> list[Subtask]:
        """Give the listed subtasks positions 0..k-1 in the order given.

        Stale ids are skipped rather than failing the batch. Returns the
        subtasks that matched, in the order given.
        """
        async with self._store.transaction() as session:
            if not await session.lock_task(task_id):
                raise NotFoundError("task", task_id)
            current = await session.list_subtasks(task_id)
            positions = {subtask.id: subtask.order_index for subtask in current}
            listed, remaining = plan_reorder(subtask_ids, [subtask.id for subtask in current])

            by_id = {subtask.id: subtask for subtask in current}
            for position, subtask_id in enumerate([*listed, *remaining]):
                if positions[subtask_id] != position:
                    updated = await session.set_order_index(subtask_id, position)
                    if updated is not None:
                        by_id[subtask_id] = updated

        skipped = len(subtask_ids) - len(listed)
        logger.info("subtasks reordered", task_id=task_id, count=len(listed), skipped=skipped)
        return [by_id[subtask_id] for subtask_id in listed]
