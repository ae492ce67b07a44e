# src/services/miniapp_api/routes/exercises.py
"""
Справочник упражнений пользователя.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.core.sport import ExerciseIn, IdIn, SportService
from src.services.miniapp_api.dependencies import get_sport_service, require_user_id

router = APIRouter(prefix="/api/exercises", tags=["Exercises"])


@router.get("")
async def list_exercises(
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    return {"ok": True, "exercises": await service.list_exercises(user_id)}


@router.post("")
async def create_exercise(
    payload: ExerciseIn,
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    """Дубль (то же имя и тип нагрузки) -> 409 DUPLICATE с найденным упражнением."""
    return {"ok": True, "exercise": await service.create_exercise(user_id, payload)}


@router.delete("")
async def delete_exercise(
    payload: IdIn,
    user_id: int = Depends(require_user_id),
    service: SportService = Depends(get_sport_service),
) -> dict[str, Any]:
    await service.delete_exercise(user_id, payload.id)
    return {"ok": True}
