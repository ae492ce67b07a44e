# tests/core/test_tasks_service.py
"""
Unit тесты сервиса задач и проектов.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.common.errors import MalformedInput, NotFound
from src.core.tasks import TaskService
from src.core.tasks.models import ProjectCreateIn, ProjectRenameIn, TaskCreateIn, TaskToggleIn

NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)


def task_row(**overrides):
    row = {"id": 1, "project_id": None, "title": "Купить хлеб", "due_date": None, "done": False, "created_at": NOW}
    row.update(overrides)
    return row


@pytest.fixture
def tasks() -> AsyncMock:
    repo = AsyncMock()
    repo.create.return_value = task_row()
    repo.set_done.return_value = task_row(done=True)
    return repo


@pytest.fixture
def projects() -> AsyncMock:
    repo = AsyncMock()
    repo.create.return_value = {"id": 3, "name": "Дом", "created_at": NOW}
    repo.delete.return_value = True
    return repo


@pytest.fixture
def service(tasks: AsyncMock, projects: AsyncMock) -> TaskService:
    return TaskService(tasks, projects)


class TestTasks:
    """Тесты задач."""

    @pytest.mark.asyncio
    async def test_today_view_filters_by_date(self, service: TaskService, tasks: AsyncMock) -> None:
        await service.list_tasks(1, None, today=date(2025, 3, 1))
        tasks.list_for_user.assert_awaited_once_with(1, date(2025, 3, 1))

    @pytest.mark.asyncio
    async def test_all_view(self, service: TaskService, tasks: AsyncMock) -> None:
        await service.list_tasks(1, "all")
        tasks.list_for_user.assert_awaited_once_with(1, None)

    @pytest.mark.asyncio
    async def test_create(self, service: TaskService, tasks: AsyncMock) -> None:
        await service.create_task(1, TaskCreateIn(title=" Купить хлеб ", due_date="2025-03-02", project_id="3"))
        tasks.create.assert_awaited_once_with(1, "Купить хлеб", date(2025, 3, 2), 3)

    @pytest.mark.parametrize(
        "payload, reason",
        [
            (TaskCreateIn(title=""), "NO_TITLE"),
            (TaskCreateIn(title="a", due_date="02.03.2025"), "BAD_DATE"),
            (TaskCreateIn(title="a", project_id="abc"), "BAD_PROJECT_ID"),
        ],
    )
    @pytest.mark.asyncio
    async def test_create_validation(self, service: TaskService, tasks: AsyncMock, payload, reason) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            await service.create_task(1, payload)
        assert exc_info.value.reason == reason
        tasks.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_in_foreign_project(self, service: TaskService, tasks: AsyncMock) -> None:
        tasks.create.return_value = None
        with pytest.raises(MalformedInput) as exc_info:
            await service.create_task(1, TaskCreateIn(title="a", project_id=99))
        assert exc_info.value.reason == "BAD_PROJECT_ID"

    @pytest.mark.asyncio
    async def test_toggle(self, service: TaskService, tasks: AsyncMock) -> None:
        result = await service.toggle_task(1, TaskToggleIn(id="1", done=True))
        tasks.set_done.assert_awaited_once_with(1, 1, True)
        assert result["done"] is True

    @pytest.mark.asyncio
    async def test_toggle_missing(self, service: TaskService, tasks: AsyncMock) -> None:
        tasks.set_done.return_value = None
        with pytest.raises(NotFound):
            await service.toggle_task(1, TaskToggleIn(id=5, done=False))


class TestProjects:
    """Тесты проектов."""

    @pytest.mark.asyncio
    async def test_create(self, service: TaskService, projects: AsyncMock) -> None:
        assert (await service.create_project(1, ProjectCreateIn(name="Дом")))["id"] == 3

    @pytest.mark.asyncio
    async def test_create_no_name(self, service: TaskService) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            await service.create_project(1, ProjectCreateIn(name=" "))
        assert exc_info.value.reason == "NO_NAME"

    @pytest.mark.asyncio
    async def test_rename_missing(self, service: TaskService, projects: AsyncMock) -> None:
        projects.rename.return_value = None
        with pytest.raises(NotFound):
            await service.rename_project(1, ProjectRenameIn(id=3, name="Дача"))

    @pytest.mark.asyncio
    async def test_delete_twice(self, service: TaskService, projects: AsyncMock) -> None:
        projects.delete.side_effect = [True, False]
        await service.delete_project(1, 3)
        with pytest.raises(NotFound):
            await service.delete_project(1, 3)
