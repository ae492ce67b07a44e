# src/core/sport/service.py
"""
Сервис тренировок: проверка ввода, владение упражнениями, формирование ответов.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional

from asyncpg import Record

from src.common.constants import (
    EXERCISE_SUGGEST_LIMIT,
    EXERCISE_SUGGEST_MIN_CHARS,
    WORKOUT_UNTITLED,
    LoadType,
    TypeMsg,
    WorkoutStatus,
    WorkoutType,
)
from src.common.errors import Conflict, MalformedInput, NotFound
from src.common.logger import log_info
from src.common.parsing import (
    clean_str,
    fits_int32,
    is_ymd,
    to_float,
    to_id_or_none,
    to_int_or_none,
    to_num_or_none,
)
from src.core.sport.models import (
    ExerciseDraft,
    ExerciseIn,
    SetDraft,
    WorkoutDraft,
    WorkoutIn,
)
from src.core.sport.repository import ExerciseRepository, WorkoutRepository
from src.core.users.revision import RevisionTracker


def normalize_exercise_name(name: Any) -> str:
    """Имя для сравнения дублей: без лишних пробелов, в нижнем регистре."""
    return re.sub(r"\s+", " ", clean_str(name)).lower()


def workout_to_dict(row: Record) -> dict[str, Any]:
    return {
        "id": row["id"],
        "title": row["title"],
        "workout_date": row["workout_date"],
        "type": row["type"],
        "duration_min": to_float(row["duration_min"]),
        "status": row["status"],
        "created_at": row["created_at"],
    }


def group_sets(set_rows: list[Record]) -> dict[int, list[dict[str, Any]]]:
    """Подходы по workout_exercise_id в порядке выборки."""
    sets_by_exercise: dict[int, list[dict[str, Any]]] = {}
    for s in set_rows:
        sets_by_exercise.setdefault(s["workout_exercise_id"], []).append(
            {
                "id": s["id"],
                "set_index": s["set_index"],
                "weight": to_float(s["weight"]),
                "reps": s["reps"],
            }
        )
    return sets_by_exercise


def exercise_to_dict(row: Record) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "load_type": row["load_type"],
        "created_at": row["created_at"],
    }


class SportService:
    """Операции раздела "Спорт"."""

    def __init__(
        self,
        workouts: WorkoutRepository,
        exercises: ExerciseRepository,
        revisions: RevisionTracker,
    ) -> None:
        self._workouts = workouts
        self._exercises = exercises
        self._revisions = revisions

    # ---------- ревизия ----------

    async def revision(self, user_id: int) -> dict[str, Any]:
        current = await self._revisions.current(user_id)
        return {"rev": {"workouts": current.rev}, "updated_at": current.updated_at}

    async def meta(self, user_id: int) -> dict[str, Any]:
        """Время последнего изменения данных (из того же счётчика, что и rev)."""
        current = await self._revisions.current(user_id)
        return {"rev": {"workouts": current.updated_at}}

    # ---------- тренировки ----------

    async def list_workouts(self, user_id: int, status: Optional[str] = None) -> list[dict[str, Any]]:
        status = clean_str(status)
        if status not in (WorkoutStatus.DRAFT.value, WorkoutStatus.DONE.value):
            status = None
        rows = await self._workouts.list_for_user(user_id, status)
        return [workout_to_dict(row) for row in rows]

    async def get_workout(self, user_id: int, raw_id: Any) -> dict[str, Any]:
        """
        Тренировка с упражнениями и подходами.

        Raises:
            MalformedInput: BAD_ID
            NotFound: WORKOUT_NOT_FOUND
        """
        workout_id = to_id_or_none(raw_id)
        if workout_id is None:
            raise MalformedInput("BAD_ID")

        workout = await self._workouts.get(user_id, workout_id)
        if workout is None:
            raise NotFound("WORKOUT_NOT_FOUND")

        exercise_rows = await self._workouts.get_exercises(workout_id)
        set_rows = await self._workouts.get_sets([row["id"] for row in exercise_rows])

        sets_by_exercise = group_sets(set_rows)

        exercises = [
            {
                "workout_exercise_id": row["id"],
                "exercise_id": row["exercise_id"],
                "name": clean_str(row["name"]),
                "order_index": row["order_index"],
                "note": row["note"],
                "sets": sets_by_exercise.get(row["id"], []),
            }
            for row in exercise_rows
        ]
        return {"workout": workout_to_dict(workout), "exercises": exercises}

    async def suggest_exercises(self, user_id: int, query: Any) -> list[dict[str, Any]]:
        q = clean_str(query)
        if len(q) < EXERCISE_SUGGEST_MIN_CHARS:
            return []
        rows = await self._workouts.suggest_exercises(user_id, q, EXERCISE_SUGGEST_LIMIT)
        return [{"id": row["id"], "name": row["name"]} for row in rows]

    async def create_workout(self, user_id: int, payload: WorkoutIn) -> dict[str, Any]:
        draft = await self._build_draft(user_id, payload)
        row = await self._workouts.create(user_id, draft)
        await log_info(f"Тренировка {row['id']} создана (user={user_id})", type_msg=TypeMsg.DEBUG)
        return workout_to_dict(row)

    async def update_workout(self, user_id: int, raw_id: Any, payload: WorkoutIn) -> dict[str, Any]:
        workout_id = to_id_or_none(raw_id)
        if workout_id is None:
            raise MalformedInput("BAD_ID")

        draft = await self._build_draft(user_id, payload)
        row = await self._workouts.update(user_id, workout_id, draft)
        if row is None:
            raise NotFound("WORKOUT_NOT_FOUND")
        return workout_to_dict(row)

    async def delete_workout(self, user_id: int, raw_id: Any) -> None:
        workout_id = to_id_or_none(raw_id)
        if workout_id is None:
            raise MalformedInput("BAD_ID")
        if not await self._workouts.delete(user_id, workout_id):
            raise NotFound()
        await log_info(f"Тренировка {workout_id} удалена (user={user_id})", type_msg=TypeMsg.DEBUG)

    async def workout_summary(self, user_id: int, raw_id: Any) -> dict[str, Any]:
        """Краткая сводка: название, время завершения и список упражнений без подходов."""
        workout_id = to_id_or_none(raw_id)
        if workout_id is None:
            raise MalformedInput("BAD_WORKOUT_ID")

        workout = await self._workouts.get(user_id, workout_id)
        if workout is None:
            raise NotFound()

        rows = await self._workouts.get_exercises(workout_id)
        exercises = [
            {"id": row["exercise_id"], "name": clean_str(row["name"])}
            for row in rows
            if row["exercise_id"] and clean_str(row["name"])
        ]
        return {
            "workout": {
                "id": workout["id"],
                "title": clean_str(workout["title"]) or WORKOUT_UNTITLED,
                "completed_at": workout["completed_at"],
            },
            "exercises": exercises,
        }

    async def _build_draft(self, user_id: int, payload: WorkoutIn) -> WorkoutDraft:
        """
        Проверяет тело тренировки.

        Raises:
            MalformedInput: BAD_DATE, BAD_TYPE, BAD_DURATION, BAD_REPS,
                BAD_EXERCISE_ID, EXERCISE_NOT_FOUND (с полем missing)
        """
        workout_date = clean_str(payload.workout_date)
        if not is_ymd(workout_date):
            raise MalformedInput("BAD_DATE")

        raw_type = clean_str(payload.type)
        if raw_type not in (WorkoutType.STRENGTH.value, WorkoutType.CARDIO.value):
            raise MalformedInput("BAD_TYPE")
        workout_type = WorkoutType(raw_type)

        status = WorkoutStatus.DONE if clean_str(payload.status) == WorkoutStatus.DONE.value else WorkoutStatus.DRAFT

        duration_min: Optional[float] = None
        if clean_str(payload.duration_min):
            duration_min = to_num_or_none(payload.duration_min)
            if duration_min is None or duration_min < 0:
                raise MalformedInput("BAD_DURATION")

        exercises: list[ExerciseDraft] = []
        # детали есть только у силовой; для кардио старые детали очищаются
        if workout_type == WorkoutType.STRENGTH and payload.exercises:
            exercise_ids = [to_id_or_none(item.exerciseId) for item in payload.exercises]
            if any(exercise_id is None for exercise_id in exercise_ids):
                raise MalformedInput("BAD_EXERCISE_ID", missing=[])

            missing = await self._workouts.missing_exercise_ids(user_id, exercise_ids)
            if missing:
                raise MalformedInput("EXERCISE_NOT_FOUND", missing=missing)

            for exercise_id, item in zip(exercise_ids, payload.exercises):
                # пустой список подходов сохраняется как один пустой подход
                sets: list[SetDraft] = []
                for s in item.sets or [None]:
                    reps = to_int_or_none(s.reps) if s else None
                    if not fits_int32(reps):
                        raise MalformedInput("BAD_REPS")
                    sets.append(SetDraft(weight=to_num_or_none(s.weight) if s else None, reps=reps))
                exercises.append(
                    ExerciseDraft(
                        exercise_id=exercise_id,
                        note=None if item.note is None else str(item.note),
                        sets=sets,
                    )
                )

        return WorkoutDraft(
            workout_date=date.fromisoformat(workout_date),
            type=workout_type,
            title=clean_str(payload.title) or None,
            status=status,
            duration_min=duration_min,
            exercises=exercises,
        )

    # ---------- упражнения ----------

    async def list_exercises(self, user_id: int) -> list[dict[str, Any]]:
        rows = await self._exercises.list_for_user(user_id)
        return [exercise_to_dict(row) for row in rows]

    async def create_exercise(self, user_id: int, payload: ExerciseIn) -> dict[str, Any]:
        """
        Создаёт упражнение.

        Raises:
            MalformedInput: NO_NAME, BAD_LOAD_TYPE
            Conflict: DUPLICATE (то же имя после нормализации и тот же тип нагрузки)
        """
        name = clean_str(payload.name)
        if not name:
            raise MalformedInput("NO_NAME")

        load_type = clean_str(payload.loadType)
        if load_type not in (LoadType.EXTERNAL.value, LoadType.BODYWEIGHT.value):
            raise MalformedInput("BAD_LOAD_TYPE")

        needle = normalize_exercise_name(name)
        for row in await self._exercises.list_by_load_type(user_id, load_type):
            if normalize_exercise_name(row["name"]) == needle:
                raise Conflict(
                    duplicate={"id": row["id"], "name": row["name"], "load_type": row["load_type"]},
                )

        row = await self._exercises.create(user_id, name, load_type)
        return exercise_to_dict(row)

    async def delete_exercise(self, user_id: int, raw_id: Any) -> None:
        exercise_id = to_id_or_none(raw_id)
        if exercise_id is None:
            raise MalformedInput("BAD_ID")
        if not await self._exercises.delete(user_id, exercise_id):
            raise NotFound()
