# src/core/sport/models.py
"""
Модели тренировок и упражнений.

*In - тело запроса как его присылает клиент (поля без строгих типов,
нормализуются в сервисе); *Draft - проверенные данные для записи в БД.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import WorkoutStatus, WorkoutType


class WorkoutSetIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    weight: Any = None
    reps: Any = None


class WorkoutExerciseIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    exerciseId: Any = None
    note: Any = None
    sets: Optional[list[WorkoutSetIn]] = None


class WorkoutIn(BaseModel):
    """Тело POST/PUT /api/sport/workouts."""

    model_config = ConfigDict(extra="ignore")

    workout_date: Any = None
    type: Any = None
    title: Any = None
    status: Any = None
    duration_min: Any = None
    exercises: Optional[list[WorkoutExerciseIn]] = None


class ExerciseIn(BaseModel):
    """Тело POST /api/exercises."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    loadType: Any = None


class IdIn(BaseModel):
    """Тело запросов удаления вида {"id": ...}."""

    model_config = ConfigDict(extra="ignore")

    id: Any = None


class SetDraft(BaseModel):
    weight: Optional[float] = None
    reps: Optional[int] = None


class ExerciseDraft(BaseModel):
    exercise_id: int
    note: Optional[str] = None
    sets: list[SetDraft] = Field(default_factory=list)


class WorkoutDraft(BaseModel):
    workout_date: date
    type: WorkoutType
    title: Optional[str] = None
    status: WorkoutStatus = WorkoutStatus.DRAFT
    duration_min: Optional[float] = None
    exercises: list[ExerciseDraft] = Field(default_factory=list)


class ProfilePatchIn(BaseModel):
    """
    Тело PATCH /api/sport/profile.
    Учитываются только присланные поля (model_fields_set).
    """

    model_config = ConfigDict(extra="ignore")

    goal: Any = None
    weight: Any = None
    measured_at: Any = None
    body_sizes: Optional[dict[str, Any]] = None
    body_comp: Optional[dict[str, Any]] = None


class MeasurementDraft(BaseModel):
    """Замер на дату; value=None удаляет замер этого вида за дату."""

    kind: str
    value: Optional[float] = None
    unit: str
    measured_at: date
