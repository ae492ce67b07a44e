# src/core/sport/repository.py
"""
Репозитории тренировок, упражнений и замеров тела.

Все запросы ограничены user_id владельца. Дочерние строки
(workout_exercises, workout_sets) читаются только после проверки
владения родительской тренировкой.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from asyncpg import Connection, Record

from src.common.parsing import escape_like
from src.core.sport.models import ExerciseDraft, MeasurementDraft, WorkoutDraft
from src.core.users.revision import bump_revision
from src.infra.database import DatabaseManager

WORKOUT_COLUMNS = "id, title, workout_date, type, duration_min, status, created_at"
EXERCISE_COLUMNS = "id, name, load_type, created_at"


class WorkoutRepository:
    """Репозиторий тренировок."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int, status: Optional[str] = None) -> list[Record]:
        """
        Список тренировок пользователя, новые сверху.

        Args:
            user_id: Владелец
            status: draft | done | None (все)
        """
        if status:
            return await self._db.fetch(
                f"""
                SELECT {WORKOUT_COLUMNS}
                FROM workouts
                WHERE user_id = $1 AND status = $2
                ORDER BY workout_date DESC, created_at DESC, id DESC
                """,
                user_id,
                status,
            )
        return await self._db.fetch(
            f"""
            SELECT {WORKOUT_COLUMNS}
            FROM workouts
            WHERE user_id = $1
            ORDER BY workout_date DESC, created_at DESC, id DESC
            """,
            user_id,
        )

    async def get(self, user_id: int, workout_id: int) -> Optional[Record]:
        return await self._db.fetchrow(
            f"SELECT {WORKOUT_COLUMNS}, completed_at FROM workouts WHERE id = $1 AND user_id = $2",
            workout_id,
            user_id,
        )

    async def get_exercises(self, workout_id: int) -> list[Record]:
        """Упражнения тренировки с названиями, по порядку."""
        return await self._db.fetch(
            """
            SELECT we.id, we.exercise_id, we.order_index, we.note, e.name
            FROM workout_exercises we
            LEFT JOIN exercises e ON e.id = we.exercise_id
            WHERE we.workout_id = $1
            ORDER BY we.order_index, we.id
            """,
            workout_id,
        )

    async def get_sets(self, workout_exercise_ids: list[int]) -> list[Record]:
        if not workout_exercise_ids:
            return []
        return await self._db.fetch(
            """
            SELECT id, workout_exercise_id, set_index, weight, reps
            FROM workout_sets
            WHERE workout_exercise_id = ANY($1::bigint[])
            ORDER BY workout_exercise_id, set_index, id
            """,
            workout_exercise_ids,
        )

    async def list_in_range(self, user_id: int, start: date, end: date, limit: int) -> list[Record]:
        """Тренировки с датой в [start, end), новые сверху."""
        return await self._db.fetch(
            f"""
            SELECT {WORKOUT_COLUMNS}, completed_at
            FROM workouts
            WHERE user_id = $1 AND workout_date >= $2 AND workout_date < $3
            ORDER BY workout_date DESC, created_at DESC, id DESC
            LIMIT $4
            """,
            user_id,
            start,
            end,
            limit,
        )

    async def range_totals(self, user_id: int, start: date, end: date) -> Record:
        """
        Итоги завершённых тренировок с датой в [start, end).

        Returns:
            workouts, duration (сумма duration_min), sets и tonnage
            (подходы и sum(weight * reps) только силовых)
        """
        return await self._db.fetchrow(
            """
            WITH w AS (
                SELECT id, type, duration_min
                FROM workouts
                WHERE user_id = $1 AND status = 'done'
                  AND workout_date >= $2 AND workout_date < $3
            )
            SELECT
                (SELECT COUNT(*) FROM w) AS workouts,
                (SELECT COALESCE(SUM(duration_min), 0) FROM w) AS duration,
                COUNT(s.id) AS sets,
                COALESCE(SUM(COALESCE(s.weight, 0) * COALESCE(s.reps, 0)), 0) AS tonnage
            FROM w
            JOIN workout_exercises we ON we.workout_id = w.id
            JOIN workout_sets s ON s.workout_exercise_id = we.id
            WHERE w.type = 'strength'
            """,
            user_id,
            start,
            end,
        )

    async def suggest_exercises(self, user_id: int, query: str, limit: int) -> list[Record]:
        """Поиск упражнений пользователя по подстроке названия."""
        return await self._db.fetch(
            """
            SELECT id, name
            FROM exercises
            WHERE user_id = $1 AND name ILIKE $2
            ORDER BY name, id
            LIMIT $3
            """,
            user_id,
            f"%{escape_like(query)}%",
            limit,
        )

    async def missing_exercise_ids(self, user_id: int, exercise_ids: list[int]) -> list[int]:
        """Возвращает id из списка, которых нет среди упражнений пользователя."""
        rows = await self._db.fetch(
            "SELECT id FROM exercises WHERE user_id = $1 AND id = ANY($2::bigint[])",
            user_id,
            exercise_ids,
        )
        found = {row["id"] for row in rows}
        return [exercise_id for exercise_id in exercise_ids if exercise_id not in found]

    async def create(self, user_id: int, draft: WorkoutDraft) -> Record:
        """Создаёт тренировку вместе с упражнениями и подходами."""
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO workouts (user_id, workout_date, type, title, status, duration_min, completed_at)
                VALUES ($1, $2, $3, $4, $5, $6, CASE WHEN $5 = 'done' THEN now() END)
                RETURNING {WORKOUT_COLUMNS}
                """,
                user_id,
                draft.workout_date,
                draft.type.value,
                draft.title,
                draft.status.value,
                draft.duration_min,
            )
            await self._insert_details(conn, row["id"], draft.exercises)
            await bump_revision(conn, user_id)
        return row

    async def update(self, user_id: int, workout_id: int, draft: WorkoutDraft) -> Optional[Record]:
        """
        Обновляет тренировку и полностью пересоздаёт её детали.

        Returns:
            Обновлённая строка или None, если тренировка не найдена
        """
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE workouts
                SET workout_date = $3,
                    type = $4,
                    title = $5,
                    status = $6,
                    duration_min = $7,
                    completed_at = CASE WHEN $6 = 'done' THEN now() END,
                    updated_at = now()
                WHERE id = $1 AND user_id = $2
                RETURNING {WORKOUT_COLUMNS}
                """,
                workout_id,
                user_id,
                draft.workout_date,
                draft.type.value,
                draft.title,
                draft.status.value,
                draft.duration_min,
            )
            if row is None:
                return None

            # подходы удаляются каскадом
            await conn.execute("DELETE FROM workout_exercises WHERE workout_id = $1", workout_id)
            await self._insert_details(conn, workout_id, draft.exercises)
            await bump_revision(conn, user_id)
        return row

    async def delete(self, user_id: int, workout_id: int) -> bool:
        async with self._db.transaction() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM workouts WHERE id = $1 AND user_id = $2 RETURNING id",
                workout_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True

    @staticmethod
    async def _insert_details(conn: Connection, workout_id: int, exercises: list[ExerciseDraft]) -> None:
        for order_index, exercise in enumerate(exercises, start=1):
            workout_exercise_id = await conn.fetchval(
                """
                INSERT INTO workout_exercises (workout_id, exercise_id, order_index, note)
                VALUES ($1, $2, $3, $4)
                RETURNING id
                """,
                workout_id,
                exercise.exercise_id,
                order_index,
                exercise.note,
            )
            await conn.executemany(
                """
                INSERT INTO workout_sets (workout_exercise_id, set_index, weight, reps)
                VALUES ($1, $2, $3, $4)
                """,
                [
                    (workout_exercise_id, set_index, s.weight, s.reps)
                    for set_index, s in enumerate(exercise.sets, start=1)
                ],
            )


class ExerciseRepository:
    """Репозиторий справочника упражнений пользователя."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int) -> list[Record]:
        return await self._db.fetch(
            f"""
            SELECT {EXERCISE_COLUMNS}
            FROM exercises
            WHERE user_id = $1
            ORDER BY created_at DESC, id DESC
            """,
            user_id,
        )

    async def list_by_load_type(self, user_id: int, load_type: str) -> list[Record]:
        return await self._db.fetch(
            "SELECT id, name, load_type FROM exercises WHERE user_id = $1 AND load_type = $2 ORDER BY id",
            user_id,
            load_type,
        )

    async def create(self, user_id: int, name: str, load_type: str) -> Record:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO exercises (user_id, name, load_type)
                VALUES ($1, $2, $3)
                RETURNING {EXERCISE_COLUMNS}
                """,
                user_id,
                name,
                load_type,
            )
            await bump_revision(conn, user_id)
        return row

    async def delete(self, user_id: int, exercise_id: int) -> bool:
        async with self._db.transaction() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM exercises WHERE id = $1 AND user_id = $2 RETURNING id",
                exercise_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True


class ProfileRepository:
    """Цель (sport_profile) и замеры тела (sport_measurements) пользователя."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_goal(self, user_id: int) -> Optional[str]:
        return await self._db.fetchval("SELECT goal FROM sport_profile WHERE user_id = $1", user_id)

    async def latest_by_kind(self, user_id: int, kinds: list[str]) -> list[Record]:
        """Самый свежий замер каждого вида (по measured_at, затем created_at)."""
        return await self._db.fetch(
            """
            SELECT DISTINCT ON (kind) kind, value, unit, measured_at
            FROM sport_measurements
            WHERE user_id = $1 AND kind = ANY($2::text[])
            ORDER BY kind, measured_at DESC, created_at DESC
            """,
            user_id,
            kinds,
        )

    async def weight_history(self, user_id: int, limit: int) -> list[Record]:
        """Последние замеры веса, новые сверху."""
        return await self._db.fetch(
            """
            SELECT value, measured_at
            FROM sport_measurements
            WHERE user_id = $1 AND kind = 'weight'
            ORDER BY measured_at DESC, created_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )

    async def series(self, user_id: int, kinds: list[str]) -> list[Record]:
        """Точки графиков: по одной на вид и дату (последняя по created_at), даты по возрастанию."""
        return await self._db.fetch(
            """
            SELECT DISTINCT ON (kind, measured_at) kind, measured_at, value
            FROM sport_measurements
            WHERE user_id = $1 AND kind = ANY($2::text[])
            ORDER BY kind, measured_at, created_at DESC
            """,
            user_id,
            kinds,
        )

    async def apply(self, user_id: int, goal: Optional[str], measurements: list[MeasurementDraft]) -> bool:
        """
        Сохраняет цель и замеры одной транзакцией.

        Замер на дату заменяется целиком: старая запись (user, kind, дата)
        удаляется, новая вставляется, если value задано.

        Args:
            goal: Новая цель или None (не менять)

        Returns:
            True, если что-то изменилось (тогда увеличена ревизия)
        """
        async with self._db.transaction() as conn:
            changed = False
            if goal is not None:
                await conn.execute(
                    """
                    INSERT INTO sport_profile (user_id, goal)
                    VALUES ($1, $2)
                    ON CONFLICT (user_id) DO UPDATE SET goal = EXCLUDED.goal, updated_at = now()
                    """,
                    user_id,
                    goal,
                )
                changed = True

            for m in measurements:
                deleted = await conn.fetchval(
                    """
                    DELETE FROM sport_measurements
                    WHERE user_id = $1 AND kind = $2 AND measured_at = $3
                    RETURNING id
                    """,
                    user_id,
                    m.kind,
                    m.measured_at,
                )
                if deleted is not None:
                    changed = True
                if m.value is None:
                    continue
                await conn.execute(
                    """
                    INSERT INTO sport_measurements (user_id, kind, value, unit, measured_at)
                    VALUES ($1, $2, $3, $4, $5)
                    """,
                    user_id,
                    m.kind,
                    m.value,
                    m.unit,
                    m.measured_at,
                )
                changed = True

            if changed:
                await bump_revision(conn, user_id)
        return changed
