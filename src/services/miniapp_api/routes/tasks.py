# src/services/miniapp_api/routes/tasks.py
"""
Задачи и проекты.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from src.core.tasks import TaskService
from src.core.tasks.models import (
    ProjectCreateIn,
    ProjectIdIn,
    ProjectRenameIn,
    TaskCreateIn,
    TaskToggleIn,
)
from src.services.miniapp_api.dependencies import get_task_service, require_user_id

router = APIRouter(prefix="/api", tags=["Tasks"])


@router.get("/tasks")
async def list_tasks(
    view: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    """view: today (по умолчанию) | all."""
    return {"ok": True, "tasks": await service.list_tasks(user_id, view)}


@router.post("/tasks")
async def create_task(
    payload: TaskCreateIn,
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    return {"ok": True, "task": await service.create_task(user_id, payload)}


@router.patch("/tasks")
async def toggle_task(
    payload: TaskToggleIn,
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    return {"ok": True, "task": await service.toggle_task(user_id, payload)}


@router.get("/projects")
async def list_projects(
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    return {"ok": True, "projects": await service.list_projects(user_id)}


@router.post("/projects")
async def create_project(
    payload: ProjectCreateIn,
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    return {"ok": True, "project": await service.create_project(user_id, payload)}


@router.patch("/projects")
async def rename_project(
    payload: ProjectRenameIn,
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    return {"ok": True, "project": await service.rename_project(user_id, payload)}


@router.delete("/projects")
async def delete_project(
    payload: ProjectIdIn,
    user_id: int = Depends(require_user_id),
    service: TaskService = Depends(get_task_service),
) -> dict[str, Any]:
    """Удаляет проект вместе с его задачами."""
    await service.delete_project(user_id, payload.id)
    return {"ok": True}
