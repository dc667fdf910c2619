"""Store interfaces shared by the PostgreSQL store and test doubles."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskbreakdown.models import Subtask, Task


class StoreSession(Protocol):
    """Operations available inside one transaction.

    Missing rows are reported as ``None``/``False``; callers decide whether
    that is a NotFoundError.
    """

    async def list_tasks(self) -> list[Task]: ...

    async def get_task(self, task_id: str) -> Task | None: ...

    async def create_task(self, title: str, description: str | None) -> Task: ...

    async def update_task(self, task_id: str, changes: dict[str, object]) -> Task | None: ...

    async def delete_task(self, task_id: str) -> bool: ...

    async def lock_task(self, task_id: str) -> bool:
        """Lock the task row until the transaction ends; False when it does not exist."""
        ...

    async def list_subtasks(self, task_id: str) -> list[Subtask]: ...

    async def get_subtask(self, subtask_id: str) -> Subtask | None: ...

    async def max_order_index(self, task_id: str) -> int:
        """Highest position used by the task's subtasks, or -1 when it has none."""
        ...

    async def insert_subtask(
        self,
        task_id: str,
        title: str,
        description: str | None,
        order_index: int,
        status: str,
    ) -> Subtask: ...

    async def update_subtask(self, subtask_id: str, changes: dict[str, object]) -> Subtask | None: ...

    async def set_order_index(self, subtask_id: str, order_index: int) -> Subtask | None: ...

    async def delete_subtask(self, subtask_id: str) -> bool: ...


class Store(Protocol):
    """A transactional task/subtask store."""

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    def transaction(self) -> AbstractAsyncContextManager[StoreSession]:
        """Open a session whose writes commit together or not at all."""
        ...
