"""Single-subtask update and delete."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from taskbreakdown.api._deps import ServicesDep  # noqa: TC001 - FastAPI resolves at runtime
from taskbreakdown.errors import NotFoundError, ValidationError
from taskbreakdown.models import Subtask, SubtaskUpdate

router = APIRouter(prefix="/subtasks", tags=["subtasks"])


@router.put("/{subtask_id}", response_model=Subtask)
async def update_subtask(subtask_id: str, body: SubtaskUpdate, services: ServicesDep) -> Subtask:
    changes = body.changes()
    if not changes:
        msg = "No fields to update"
        raise ValidationError(msg)
    async with services.store.transaction() as session:
        subtask = await session.update_subtask(subtask_id, changes)
    if subtask is None:
        raise NotFoundError("subtask", subtask_id)
    return subtask


@router.delete("/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtask(subtask_id: str, services: ServicesDep) -> Response:
    async with services.store.transaction() as session:
        deleted = await session.delete_subtask(subtask_id)
    if not deleted:
        raise NotFoundError("subtask", subtask_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
