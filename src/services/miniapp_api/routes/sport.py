# src/services/miniapp_api/routes/sport.py
"""
Раздел "Спорт": ревизия, тренировки, сводка, обзор, профиль и статистика.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from src.core.sport import ProfilePatchIn, SportService, SportStatsService, WorkoutIn
from src.services.miniapp_api.dependencies import (
    get_sport_service,
    get_sport_stats_service,
    require_user_id,
)

router = APIRouter(prefix="/api/sport", tags=["Sport"])


@router.get("/rev")
async def get_sport_revision(
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    return {"ok": True, **await service.revision(user_id)}


@router.get("/meta")
async def get_sport_meta(
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    return {"ok": True, **await service.meta(user_id)}


@router.get("/workouts")
async def get_workouts(
    id: Optional[str] = Query(default=None),
    exercise_q: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    """
    - ?id=123: одна тренировка с упражнениями и подходами
    - ?exercise_q=жим: подсказки упражнений
    - ?status=draft|done: список тренировок
    """
    if id is not None and id.strip():
        return {"ok": True, **await service.get_workout(user_id, id)}

    if exercise_q is not None and exercise_q.strip():
        return {"ok": True, "exercises": await service.suggest_exercises(user_id, exercise_q)}

    return {"ok": True, "workouts": await service.list_workouts(user_id, status)}


@router.post("/workouts")
async def create_workout(
    payload: WorkoutIn,
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    return {"ok": True, "workout": await service.create_workout(user_id, payload)}


@router.put("/workouts")
async def update_workout(
    payload: WorkoutIn,
    id: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    """Обновляет тренировку, упражнения и подходы пересоздаются."""
    return {"ok": True, "workout": await service.update_workout(user_id, id, payload)}


@router.delete("/workouts")
async def delete_workout(
    id: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    await service.delete_workout(user_id, id)
    return {"ok": True}


@router.get("/workouts/summary")
async def get_workout_summary(
    workout_id: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    return {"ok": True, **await service.workout_summary(user_id, workout_id)}


# === ОБЗОР И ПРОФИЛЬ ===

@router.get("/overview")
async def get_overview(
    year: Optional[str] = Query(default=None),
    month: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    """Тренировки месяца (?year=2025&month=3, по умолчанию текущий), имя, цель и вес."""
    return {"ok": True, **await stats.overview(user_id, year, month)}


@router.get("/profile")
async def get_profile(
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    return {"ok": True, **await stats.profile(user_id)}


@router.patch("/profile")
async def patch_profile(
    payload: ProfilePatchIn,
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    """Меняет только присланные поля: goal, weight (+ measured_at), body_sizes, body_comp."""
    return {"ok": True, **await stats.update_profile(user_id, payload)}


# === СТАТИСТИКА ===

@router.get("/stats")
async def get_workout_stats(
    workoutId: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    return {"ok": True, **await stats.workout_stats(user_id, workoutId)}


@router.get("/stats/curworkout")
async def get_current_workout_stats(
    id: Optional[str] = Query(default=None),
    workout_id: Optional[str] = Query(default=None),
    workoutId: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    """Id тренировки принимается как ?id, ?workout_id или ?workoutId."""
    raw_id = next((v for v in (id, workout_id, workoutId) if v is not None and v.strip()), None)
    return {"ok": True, **await stats.current_workout(user_id, raw_id)}


@router.get("/stats/body")
async def get_body_stats(
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    return {"ok": True, **await stats.body_stats(user_id)}


@router.get("/stats/overview")
async def get_overview_stats(
    period: Optional[str] = Query(default=None),
    anchor: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    stats: SportStatsService = Depends(get_sport_stats_service),
) -> dict[str, Any]:
    """?period=week|month (по умолчанию week), ?anchor=YYYY-MM-DD (по умолчанию сегодня)."""
    return {"ok": True, **await stats.overview_stats(user_id, period, anchor)}
