# src/core/tasks/repository.py
"""
Репозитории задач и проектов.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from asyncpg import Record

from src.core.users.revision import bump_revision
from src.infra.database import DatabaseManager

TASK_COLUMNS = "id, project_id, title, due_date, done, created_at"
PROJECT_COLUMNS = "id, name, created_at"


class TaskRepository:
    """Репозиторий задач."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int, due_date: Optional[date] = None) -> list[Record]:
        """
        Задачи пользователя, новые сверху.

        Args:
            due_date: Если задан, только задачи на эту дату
        """
        if due_date is not None:
            return await self._db.fetch(
                f"SELECT {TASK_COLUMNS} FROM tasks WHERE user_id = $1 AND due_date = $2 ORDER BY id DESC",
                user_id,
                due_date,
            )
        return await self._db.fetch(
            f"SELECT {TASK_COLUMNS} FROM tasks WHERE user_id = $1 ORDER BY id DESC",
            user_id,
        )

    async def create(
        self,
        user_id: int,
        title: str,
        due_date: Optional[date],
        project_id: Optional[int],
    ) -> Optional[Record]:
        """
        Создаёт задачу.

        Returns:
            Задача или None, если project_id не принадлежит пользователю
        """
        async with self._db.transaction() as conn:
            if project_id is not None:
                owned = await conn.fetchval(
                    "SELECT 1 FROM projects WHERE id = $1 AND user_id = $2",
                    project_id,
                    user_id,
                )
                if owned is None:
                    return None
            row = await conn.fetchrow(
                f"""
                INSERT INTO tasks (user_id, project_id, title, due_date, done)
                VALUES ($1, $2, $3, $4, false)
                RETURNING {TASK_COLUMNS}
                """,
                user_id,
                project_id,
                title,
                due_date,
            )
            await bump_revision(conn, user_id)
        return row

    async def set_done(self, user_id: int, task_id: int, done: bool) -> Optional[Record]:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"UPDATE tasks SET done = $3 WHERE id = $1 AND user_id = $2 RETURNING {TASK_COLUMNS}",
                task_id,
                user_id,
                done,
            )
            if row is None:
                return None
            await bump_revision(conn, user_id)
        return row


class ProjectRepository:
    """Репозиторий проектов."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int) -> list[Record]:
        return await self._db.fetch(
            f"SELECT {PROJECT_COLUMNS} FROM projects WHERE user_id = $1 ORDER BY created_at, id",
            user_id,
        )

    async def create(self, user_id: int, name: str) -> Record:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"INSERT INTO projects (user_id, name) VALUES ($1, $2) RETURNING {PROJECT_COLUMNS}",
                user_id,
                name,
            )
            await bump_revision(conn, user_id)
        return row

    async def rename(self, user_id: int, project_id: int, name: str) -> Optional[Record]:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"UPDATE projects SET name = $3 WHERE id = $1 AND user_id = $2 RETURNING {PROJECT_COLUMNS}",
                project_id,
                user_id,
                name,
            )
            if row is None:
                return None
            await bump_revision(conn, user_id)
        return row

    async def delete(self, user_id: int, project_id: int) -> bool:
        """Удаляет проект вместе с его задачами."""
        async with self._db.transaction() as conn:
            await conn.execute(
                "DELETE FROM tasks WHERE project_id = $1 AND user_id = $2",
                project_id,
                user_id,
            )
            deleted = await conn.fetchval(
                "DELETE FROM projects WHERE id = $1 AND user_id = $2 RETURNING id",
                project_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True
