# src/core/tasks/models.py
"""
Модели задач и проектов.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TaskCreateIn(_Body):
    title: Any = None
    due_date: Any = None
    project_id: Any = None


class TaskToggleIn(_Body):
    id: Any = None
    done: Any = None


class ProjectCreateIn(_Body):
    name: Any = None


class ProjectRenameIn(_Body):
    id: Any = None
    name: Any = None


class ProjectIdIn(_Body):
    id: Any = None
