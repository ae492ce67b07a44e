# src/core/tasks/__init__.py
"""
Домен задач и проектов.
"""

from src.core.tasks.repository import ProjectRepository, TaskRepository
from src.core.tasks.service import TaskService

__all__ = [
    "ProjectRepository",
    "TaskRepository",
    "TaskService",
]
