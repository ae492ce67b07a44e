# src/core/tasks/service.py
"""
Сервис задач и проектов.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from asyncpg import Record

from src.common.errors import MalformedInput, NotFound
from src.common.parsing import clean_str, is_ymd, to_id_or_none
from src.core.tasks.models import ProjectCreateIn, ProjectRenameIn, TaskCreateIn, TaskToggleIn
from src.core.tasks.repository import ProjectRepository, TaskRepository


def task_to_dict(row: Record) -> dict[str, Any]:
    return {
        "id": row["id"],
        "project_id": row["project_id"],
        "title": row["title"],
        "due_date": row["due_date"],
        "done": row["done"],
        "created_at": row["created_at"],
    }


def project_to_dict(row: Record) -> dict[str, Any]:
    return {"id": row["id"], "name": row["name"], "created_at": row["created_at"]}


class TaskService:
    """Задачи и проекты пользователя."""

    def __init__(self, tasks: TaskRepository, projects: ProjectRepository) -> None:
        self._tasks = tasks
        self._projects = projects

    async def list_tasks(self, user_id: int, view: Any = None, today: Optional[date] = None) -> list[dict[str, Any]]:
        """
        Args:
            view: today (по умолчанию) | all
            today: Текущая дата (для тестов)
        """
        view = clean_str(view) or "today"
        due_date = (today or date.today()) if view == "today" else None
        rows = await self._tasks.list_for_user(user_id, due_date)
        return [task_to_dict(row) for row in rows]

    async def create_task(self, user_id: int, payload: TaskCreateIn) -> dict[str, Any]:
        """
        Raises:
            MalformedInput: NO_TITLE, BAD_DATE, BAD_PROJECT_ID
        """
        title = clean_str(payload.title)
        if not title:
            raise MalformedInput("NO_TITLE")

        due_date: Optional[date] = None
        raw_date = clean_str(payload.due_date)
        if raw_date:
            if not is_ymd(raw_date):
                raise MalformedInput("BAD_DATE")
            due_date = date.fromisoformat(raw_date)

        project_id: Optional[int] = None
        if clean_str(payload.project_id):
            project_id = to_id_or_none(payload.project_id)
            if project_id is None:
                raise MalformedInput("BAD_PROJECT_ID")

        row = await self._tasks.create(user_id, title, due_date, project_id)
        if row is None:
            raise MalformedInput("BAD_PROJECT_ID")
        return task_to_dict(row)

    async def toggle_task(self, user_id: int, payload: TaskToggleIn) -> dict[str, Any]:
        task_id = to_id_or_none(payload.id)
        if task_id is None:
            raise MalformedInput("BAD_ID")

        row = await self._tasks.set_done(user_id, task_id, bool(payload.done))
        if row is None:
            raise NotFound()
        return task_to_dict(row)

    async def list_projects(self, user_id: int) -> list[dict[str, Any]]:
        return [project_to_dict(row) for row in await self._projects.list_for_user(user_id)]

    async def create_project(self, user_id: int, payload: ProjectCreateIn) -> dict[str, Any]:
        name = clean_str(payload.name)
        if not name:
            raise MalformedInput("NO_NAME")
        return project_to_dict(await self._projects.create(user_id, name))

    async def rename_project(self, user_id: int, payload: ProjectRenameIn) -> dict[str, Any]:
        project_id = to_id_or_none(payload.id)
        if project_id is None:
            raise MalformedInput("BAD_ID")
        name = clean_str(payload.name)
        if not name:
            raise MalformedInput("NO_NAME")

        row = await self._projects.rename(user_id, project_id, name)
        if row is None:
            raise NotFound()
        return project_to_dict(row)

    async def delete_project(self, user_id: int, raw_id: Any) -> None:
        project_id = to_id_or_none(raw_id)
        if project_id is None:
            raise MalformedInput("BAD_ID")
        if not await self._projects.delete(user_id, project_id):
            raise NotFound()
