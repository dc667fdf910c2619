"""PostgresStore: task and subtask persistence via psycopg 3.

All work runs inside ``transaction()``; appends lock the parent task row with
``SELECT ... FOR UPDATE`` so position assignment for one task is serialized,
and a deferred unique constraint on ``(task_id, order_index)`` guards the
no-shared-position invariant at commit time.
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from taskbreakdown.models import Subtask, Task

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    import psycopg

logger = structlog.get_logger()

SLOW_QUERY_SECONDS = 0.1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tasks (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title VARCHAR(500) NOT NULL CHECK (length(trim(title)) > 0),
    description TEXT,
    status VARCHAR(20) NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'in_progress', 'completed')),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS subtasks (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    task_id UUID NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
    title VARCHAR(500) NOT NULL CHECK (length(trim(title)) > 0),
    description TEXT,
    status VARCHAR(20) NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'in_progress', 'completed')),
    order_index INTEGER NOT NULL CHECK (order_index >= 0),
    CONSTRAINT subtasks_task_order_unique UNIQUE (task_id, order_index) DEFERRABLE INITIALLY DEFERRED
);
"""

_TASK_FIELDS = "id, title, description, status, created_at"
_SUBTASK_FIELDS = "id, task_id, title, description, status, order_index"
_UPDATABLE_COLUMNS = frozenset({"title", "description", "status"})


def _as_uuid(value: str) -> uuid.UUID | None:
    """Parse an identifier; anything that is not a UUID cannot exist in the store."""
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


def _task_from_row(row: dict[str, Any]) -> Task:
    return Task(
        id=str(row["id"]),
        title=row["title"],
        description=row["description"],
        status=row["status"],
        created_at=row["created_at"],
    )


def _subtask_from_row(row: dict[str, Any]) -> Subtask:
    return Subtask(
        id=str(row["id"]),
        task_id=str(row["task_id"]),
        title=row["title"],
        description=row["description"],
        status=row["status"],
        order_index=row["order_index"],
    )


def _set_clause(changes: dict[str, object]) -> tuple[sql.Composable, list[object]]:
    columns = [name for name in changes if name in _UPDATABLE_COLUMNS]
    clause = sql.SQL(", ").join(sql.SQL("{} = %s").format(sql.Identifier(name)) for name in columns)
    return clause, [changes[name] for name in columns]


class PostgresSession:
    """StoreSession bound to one pooled connection and one transaction."""

    def __init__(self, conn: psycopg.AsyncConnection[dict[str, Any]]) -> None:
        self._conn = conn

    async def _fetch(self, query: str | sql.Composable, params: Sequence[object] = ()) -> list[dict[str, Any]]:
        start = time.perf_counter()
        async with self._conn.cursor() as cur:
            await cur.execute(query, params)
            rows = await cur.fetchall() if cur.description else []
        elapsed = time.perf_counter() - start
        if elapsed > SLOW_QUERY_SECONDS:
            text = query if isinstance(query, str) else query.as_string(self._conn)
            logger.warning("slow query", query=" ".join(text.split()), duration_ms=round(elapsed * 1000), rows=len(rows))
        return rows

    async def list_tasks(self) -> list[Task]:
        rows = await self._fetch(f"SELECT {_TASK_FIELDS} FROM tasks ORDER BY created_at DESC")
        return [_task_from_row(r) for r in rows]

    async def get_task(self, task_id: str) -> Task | None:
        key = _as_uuid(task_id)
        if key is None:
            return None
        rows = await self._fetch(f"SELECT {_TASK_FIELDS} FROM tasks WHERE id = %s", (key,))
        return _task_from_row(rows[0]) if rows else None

    async def create_task(self, title: str, description: str | None) -> Task:
        rows = await self._fetch(
            f"INSERT INTO tasks (title, description) VALUES (%s, %s) RETURNING {_TASK_FIELDS}",
            (title, description),
        )
        return _task_from_row(rows[0])

    async def update_task(self, task_id: str, changes: dict[str, object]) -> Task | None:
        key = _as_uuid(task_id)
        clause, values = _set_clause(changes)
        if key is None or not values:
            return None
        query = sql.SQL("UPDATE tasks SET {} WHERE id = %s RETURNING {}").format(clause, sql.SQL(_TASK_FIELDS))
        rows = await self._fetch(query, [*values, key])
        return _task_from_row(rows[0]) if rows else None

    async def delete_task(self, task_id: str) -> bool:
        key = _as_uuid(task_id)
        if key is None:
            return False
        rows = await self._fetch("DELETE FROM tasks WHERE id = %s RETURNING id", (key,))
        return bool(rows)

    async def lock_task(self, task_id: str) -> bool:
        key = _as_uuid(task_id)
        if key is None:
            return False
        rows = await self._fetch("SELECT id FROM tasks WHERE id = %s FOR UPDATE", (key,))
        return bool(rows)

    async def list_subtasks(self, task_id: str) -> list[Subtask]:
        key = _as_uuid(task_id)
        if key is None:
            return []
        rows = await self._fetch(
            f"SELECT {_SUBTASK_FIELDS} FROM subtasks WHERE task_id = %s ORDER BY order_index ASC",
            (key,),
        )
        return [_subtask_from_row(r) for r in rows]

    async def get_subtask(self, subtask_id: str) -> Subtask | None:
        key = _as_uuid(subtask_id)
        if key is None:
            return None
        rows = await self._fetch(f"SELECT {_SUBTASK_FIELDS} FROM subtasks WHERE id = %s", (key,))
        return _subtask_from_row(rows[0]) if rows else None

    async def max_order_index(self, task_id: str) -> int:
        key = _as_uuid(task_id)
        if key is None:
            return -1
        rows = await self._fetch(
            "SELECT COALESCE(MAX(order_index), -1) AS max_order FROM subtasks WHERE task_id = %s",
            (key,),
        )
        return int(rows[0]["max_order"])

    async def insert_subtask(
        self,
        task_id: str,
        title: str,
        description: str | None,
        order_index: int,
        status: str,
    ) -> Subtask:
        rows = await self._fetch(
            f"""INSERT INTO subtasks (task_id, title, description, order_index, status)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {_SUBTASK_FIELDS}""",
            (_as_uuid(task_id), title, description, order_index, status),
        )
        return _subtask_from_row(rows[0])

    async def update_subtask(self, subtask_id: str, changes: dict[str, object]) -> Subtask | None:
        key = _as_uuid(subtask_id)
        clause, values = _set_clause(changes)
        if key is None or not values:
            return None
        query = sql.SQL("UPDATE subtasks SET {} WHERE id = %s RETURNING {}").format(
            clause, sql.SQL(_SUBTASK_FIELDS)
        )
        rows = await self._fetch(query, [*values, key])
        return _subtask_from_row(rows[0]) if rows else None

    async def set_order_index(self, subtask_id: str, order_index: int) -> Subtask | None:
        key = _as_uuid(subtask_id)
        if key is None:
            return None
        rows = await self._fetch(
            f"UPDATE subtasks SET order_index = %s WHERE id = %s RETURNING {_SUBTASK_FIELDS}",
            (order_index, key),
        )
        return _subtask_from_row(rows[0]) if rows else None

    async def delete_subtask(self, subtask_id: str) -> bool:
        key = _as_uuid(subtask_id)
        if key is None:
            return False
        rows = await self._fetch("DELETE FROM subtasks WHERE id = %s RETURNING id", (key,))
        return bool(rows)


class PostgresStore:
    """Pooled PostgreSQL store."""

    def __init__(self, database_url: str, max_size: int = 20, create_schema: bool = True) -> None:
        self._pool = AsyncConnectionPool(
            database_url,
            min_size=1,
            max_size=max_size,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        self._create_schema = create_schema

    async def open(self) -> None:
        """Open the pool, failing fast when the database is unreachable."""
        await self._pool.open(wait=True, timeout=10.0)
        if self._create_schema:
            async with self._pool.connection() as conn:
                await conn.execute(SCHEMA_SQL)
        logger.info("database connected", pool_max=self._pool.max_size)

    async def close(self) -> None:
        await self._pool.close()
        logger.info("database pool closed")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresSession]:
        async with self._pool.connection() as conn, conn.transaction():
            yield PostgresSession(conn)
