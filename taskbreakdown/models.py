"""Domain models for tasks and subtasks exchanged over the REST API."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs at runtime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskbreakdown.constants import MAX_TITLE_CHARS


class TaskStatus(StrEnum):
    """Status shared by tasks and subtasks."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def normalize_title(value: str) -> str:
    """Trim a caller-supplied title and enforce the storage limit."""
    title = value.strip()
    if not title:
        msg = "Title is required and must be a non-empty string"
        raise ValueError(msg)
    if len(title) > MAX_TITLE_CHARS:
        msg = f"Title must be at most {MAX_TITLE_CHARS} characters"
        raise ValueError(msg)
    return title


def normalize_description(value: str | None) -> str | None:
    """Trim a description, storing blank text as null."""
    if value is None:
        return None
    return value.strip() or None


class Task(BaseModel):
    """A top-level unit of work."""

    id: str
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime


class Subtask(BaseModel):
    """An ordered child of a task with its own status."""

    id: str
    task_id: str
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    order_index: int = Field(ge=0)


class TaskDetail(Task):
    """A task together with its subtasks ordered by ``order_index``."""

    subtasks: list[Subtask] = Field(default_factory=list)


# --- Request bodies ---


class TaskCreate(BaseModel):
    """Body of ``POST /api/tasks``."""

    title: str
    description: str | None = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        return normalize_title(v)

    @field_validator("description")
    @classmethod
    def _check_description(cls, v: str | None) -> str | None:
        return normalize_description(v)


class TaskUpdate(BaseModel):
    """Body of ``PUT /api/tasks/{id}``; only fields that are sent get updated."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str | None) -> str:
        if v is None:
            msg = "Title cannot be null"
            raise ValueError(msg)
        return normalize_title(v)

    @field_validator("status")
    @classmethod
    def _check_status(cls, v: TaskStatus | None) -> TaskStatus:
        if v is None:
            msg = "Status cannot be null"
            raise ValueError(msg)
        return v

    @field_validator("description")
    @classmethod
    def _check_description(cls, v: str | None) -> str | None:
        return normalize_description(v)

    def changes(self) -> dict[str, object]:
        """Return the explicitly provided fields, ready for the store."""
        return self.model_dump(exclude_unset=True, mode="json")


class SubtaskUpdate(TaskUpdate):
    """Body of ``PUT /api/subtasks/{id}``.

    Positions are not editable here; use the reorder endpoint.
    """


class SubtaskInput(BaseModel):
    """A manually entered subtask."""

    title: str
    description: str | None = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        return normalize_title(v)

    @field_validator("description")
    @classmethod
    def _check_description(cls, v: str | None) -> str | None:
        return normalize_description(v)


class SubtaskBatch(BaseModel):
    """Body of ``POST /api/tasks/{id}/subtasks``."""

    subtasks: list[SubtaskInput] = Field(min_length=1)


class ReorderRequest(BaseModel):
    """Body of ``PUT /api/tasks/{id}/reorder``."""

    model_config = ConfigDict(populate_by_name=True)

    subtask_ids: list[str] = Field(alias="subtaskIds")
