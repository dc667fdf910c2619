"""Task CRUD plus manual subtask append and reorder."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from taskbreakdown.api._deps import ServicesDep  # noqa: TC001 - FastAPI resolves at runtime
from taskbreakdown.breakdown.schemas import SubtaskCandidate
from taskbreakdown.errors import NotFoundError, ValidationError
from taskbreakdown.models import ReorderRequest, Subtask, SubtaskBatch, Task, TaskCreate, TaskDetail, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[Task])
async def list_tasks(services: ServicesDep) -> list[Task]:
    """All tasks, newest first, without subtasks."""
    async with services.store.transaction() as session:
        return await session.list_tasks()


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, services: ServicesDep) -> Task:
    async with services.store.transaction() as session:
        return await session.create_task(body.title, body.description)


@router.get("/{task_id}", response_model=TaskDetail)
async def get_task(task_id: str, services: ServicesDep) -> TaskDetail:
    async with services.store.transaction() as session:
        task = await session.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        subtasks = await session.list_subtasks(task_id)
    return TaskDetail(**task.model_dump(), subtasks=subtasks)


@router.put("/{task_id}", response_model=Task)
async def update_task(task_id: str, body: TaskUpdate, services: ServicesDep) -> Task:
    changes = body.changes()
    if not changes:
        msg = "No fields to update"
        raise ValidationError(msg)
    async with services.store.transaction() as session:
        task = await session.update_task(task_id, changes)
    if task is None:
        raise NotFoundError("task", task_id)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, services: ServicesDep) -> Response:
    """Delete a task; its subtasks go with it."""
    async with services.store.transaction() as session:
        deleted = await session.delete_task(task_id)
    if not deleted:
        raise NotFoundError("task", task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/subtasks", response_model=list[Subtask], status_code=status.HTTP_201_CREATED)
async def append_subtasks(task_id: str, body: SubtaskBatch, services: ServicesDep) -> list[Subtask]:
    """Append manually entered subtasks after the existing ones."""
    candidates = [SubtaskCandidate(title=item.title, description=item.description or "") for item in body.subtasks]
    return await services.sequencer.append(task_id, candidates)


@router.put("/{task_id}/reorder", response_model=list[Subtask])
async def reorder_subtasks(task_id: str, body: ReorderRequest, services: ServicesDep) -> list[Subtask]:
    return await services.sequencer.reorder(task_id, body.subtask_ids)
