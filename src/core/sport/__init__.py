# src/core/sport/__init__.py
"""
Домен "Спорт": тренировки, упражнения, подходы, профиль и статистика.
"""

from src.core.sport.models import ExerciseIn, IdIn, ProfilePatchIn, WorkoutIn
from src.core.sport.repository import ExerciseRepository, ProfileRepository, WorkoutRepository
from src.core.sport.service import SportService
from src.core.sport.stats import SportStatsService

__all__ = [
    "ExerciseIn",
    "IdIn",
    "ProfilePatchIn",
    "WorkoutIn",
    "ExerciseRepository",
    "ProfileRepository",
    "WorkoutRepository",
    "SportService",
    "SportStatsService",
]
