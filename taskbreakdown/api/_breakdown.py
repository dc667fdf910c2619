"""AI breakdown endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from taskbreakdown.api._deps import ServicesDep  # noqa: TC001 - FastAPI resolves at runtime
from taskbreakdown.breakdown.schemas import BreakdownRequest, SubtaskCandidate
from taskbreakdown.errors import NotFoundError
from taskbreakdown.models import Subtask

router = APIRouter(tags=["breakdown"])


@router.post("/ai/breakdown", response_model=list[SubtaskCandidate])
async def generate_breakdown(body: BreakdownRequest, services: ServicesDep) -> list[SubtaskCandidate]:
    """Generate candidates from free text without persisting anything."""
    return await services.generator.generate(body.title, body.description or "")


@router.post("/tasks/{task_id}/breakdown", response_model=list[Subtask], status_code=status.HTTP_201_CREATED)
async def breakdown_task(task_id: str, services: ServicesDep) -> list[Subtask]:
    """Generate subtasks from a stored task and append them to it."""
    async with services.store.transaction() as session:
        task = await session.get_task(task_id)
    if task is None:
        raise NotFoundError("task", task_id)

    # The provider call runs outside any transaction; append re-checks the task.
    candidates = await services.generator.generate(task.title, task.description or "")
    return await services.sequencer.append(task_id, candidates)
