# tests/core/test_sport_service.py
"""
Unit тесты сервиса тренировок (репозитории замоканы).
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.common.errors import Conflict, MalformedInput, NotFound
from src.core.sport import SportService
from src.core.sport.models import ExerciseIn, WorkoutIn
from src.core.users import Revision

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def workout_row(**overrides):
    row = {
        "id": 10,
        "title": "Ноги",
        "workout_date": date(2025, 3, 1),
        "type": "strength",
        "duration_min": Decimal("45"),
        "status": "draft",
        "created_at": NOW,
        "completed_at": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def workouts() -> AsyncMock:
    repo = AsyncMock()
    repo.missing_exercise_ids.return_value = []
    repo.create.return_value = workout_row()
    repo.update.return_value = workout_row()
    repo.delete.return_value = True
    return repo


@pytest.fixture
def exercises() -> AsyncMock:
    repo = AsyncMock()
    repo.list_by_load_type.return_value = []
    repo.create.return_value = {"id": 3, "name": "Присед", "load_type": "external", "created_at": NOW}
    return repo


@pytest.fixture
def revisions() -> AsyncMock:
    tracker = AsyncMock()
    tracker.current.return_value = Revision(rev=7, updated_at=NOW)
    return tracker


@pytest.fixture
def service(workouts: AsyncMock, exercises: AsyncMock, revisions: AsyncMock) -> SportService:
    return SportService(workouts, exercises, revisions)


class TestRevision:
    @pytest.mark.asyncio
    async def test_revision(self, service: SportService) -> None:
        result = await service.revision(1)
        assert result == {"rev": {"workouts": 7}, "updated_at": NOW}

    @pytest.mark.asyncio
    async def test_meta_returns_update_time(self, service: SportService) -> None:
        assert await service.meta(1) == {"rev": {"workouts": NOW}}


class TestWorkouts:
    """Тесты операций с тренировками."""

    @pytest.mark.asyncio
    async def test_list_unknown_status_means_all(self, service: SportService, workouts: AsyncMock) -> None:
        workouts.list_for_user.return_value = [workout_row()]

        result = await service.list_workouts(1, "archived")

        workouts.list_for_user.assert_awaited_once_with(1, None)
        assert result[0]["duration_min"] == 45.0

    @pytest.mark.asyncio
    async def test_list_by_status(self, service: SportService, workouts: AsyncMock) -> None:
        await service.list_workouts(1, "done")
        workouts.list_for_user.assert_awaited_once_with(1, "done")

    @pytest.mark.asyncio
    async def test_get_workout_groups_sets(self, service: SportService, workouts: AsyncMock) -> None:
        workouts.get.return_value = workout_row()
        workouts.get_exercises.return_value = [
            {"id": 100, "exercise_id": 3, "order_index": 1, "note": None, "name": "Присед"},
            {"id": 101, "exercise_id": 4, "order_index": 2, "note": "узко", "name": "Жим"},
        ]
        workouts.get_sets.return_value = [
            {"id": 1, "workout_exercise_id": 100, "set_index": 1, "weight": Decimal("60"), "reps": 10},
            {"id": 2, "workout_exercise_id": 100, "set_index": 2, "weight": Decimal("62.5"), "reps": 8},
        ]

        result = await service.get_workout(1, "10")

        workouts.get.assert_awaited_once_with(1, 10)
        workouts.get_sets.assert_awaited_once_with([100, 101])
        first, second = result["exercises"]
        assert [s["weight"] for s in first["sets"]] == [60.0, 62.5]
        assert second["sets"] == []
        assert second["note"] == "узко"

    @pytest.mark.asyncio
    async def test_get_workout_bad_id(self, service: SportService, workouts: AsyncMock) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            await service.get_workout(1, "abc")
        assert exc_info.value.reason == "BAD_ID"
        workouts.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_foreign_workout_not_found(self, service: SportService, workouts: AsyncMock) -> None:
        """Чужая тренировка неотличима от несуществующей."""
        workouts.get.return_value = None

        with pytest.raises(NotFound) as exc_info:
            await service.get_workout(1, 10)

        assert exc_info.value.reason == "WORKOUT_NOT_FOUND"
        workouts.get_exercises.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_strength_workout(self, service: SportService, workouts: AsyncMock) -> None:
        payload = WorkoutIn(
            workout_date="2025-03-01",
            type="strength",
            title="  Ноги ",
            status="done",
            duration_min="45,5",
            exercises=[
                {"exerciseId": "3", "sets": [{"weight": "60", "reps": "10"}]},
                {"exerciseId": 4, "sets": []},
            ],
        )

        await service.create_workout(1, payload)

        workouts.missing_exercise_ids.assert_awaited_once_with(1, [3, 4])
        user_id, draft = workouts.create.await_args.args
        assert user_id == 1
        assert draft.workout_date == date(2025, 3, 1)
        assert draft.title == "Ноги"
        assert draft.status.value == "done"
        assert draft.duration_min == 45.5
        assert draft.exercises[0].sets[0].weight == 60.0
        assert draft.exercises[0].sets[0].reps == 10
        # пустой список подходов сохраняется как один пустой подход
        assert len(draft.exercises[1].sets) == 1
        assert draft.exercises[1].sets[0].weight is None

    @pytest.mark.asyncio
    async def test_cardio_drops_exercises(self, service: SportService, workouts: AsyncMock) -> None:
        payload = WorkoutIn(workout_date="2025-03-01", type="cardio", exercises=[{"exerciseId": 3}])

        await service.create_workout(1, payload)

        workouts.missing_exercise_ids.assert_not_called()
        assert workouts.create.await_args.args[1].exercises == []

    @pytest.mark.parametrize(
        "fields, reason",
        [
            ({"workout_date": "2025-13-01", "type": "strength"}, "BAD_DATE"),
            ({"workout_date": "2025-03-01", "type": "yoga"}, "BAD_TYPE"),
            ({"workout_date": "2025-03-01", "type": "cardio", "duration_min": "-5"}, "BAD_DURATION"),
            ({"workout_date": "2025-03-01", "type": "cardio", "duration_min": "abc"}, "BAD_DURATION"),
            ({"workout_date": "2025-03-01", "type": "strength", "exercises": [{"exerciseId": "x"}]}, "BAD_EXERCISE_ID"),
            (
                {
                    "workout_date": "2025-03-01",
                    "type": "strength",
                    "exercises": [{"exerciseId": 3, "sets": [{"weight": 50, "reps": "1e12"}]}],
                },
                "BAD_REPS",
            ),
        ],
    )
    @pytest.mark.asyncio
    async def test_create_rejects_bad_input(
        self, service: SportService, workouts: AsyncMock, fields: dict, reason: str
    ) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            await service.create_workout(1, WorkoutIn(**fields))

        assert exc_info.value.reason == reason
        workouts.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_with_foreign_exercise(self, service: SportService, workouts: AsyncMock) -> None:
        """Упражнения другого пользователя перечисляются в missing."""
        workouts.missing_exercise_ids.return_value = [4]
        payload = WorkoutIn(
            workout_date="2025-03-01",
            type="strength",
            exercises=[{"exerciseId": 3}, {"exerciseId": 4}],
        )

        with pytest.raises(MalformedInput) as exc_info:
            await service.create_workout(1, payload)

        assert exc_info.value.reason == "EXERCISE_NOT_FOUND"
        assert exc_info.value.to_body()["missing"] == [4]
        workouts.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_missing_workout(self, service: SportService, workouts: AsyncMock) -> None:
        workouts.update.return_value = None

        with pytest.raises(NotFound):
            await service.update_workout(1, 99, WorkoutIn(workout_date="2025-03-01", type="cardio"))

    @pytest.mark.asyncio
    async def test_delete_twice(self, service: SportService, workouts: AsyncMock) -> None:
        """Повторное удаление даёт NotFound."""
        workouts.delete.side_effect = [True, False]

        await service.delete_workout(1, "10")
        with pytest.raises(NotFound):
            await service.delete_workout(1, "10")

    @pytest.mark.asyncio
    async def test_summary_untitled(self, service: SportService, workouts: AsyncMock) -> None:
        workouts.get.return_value = workout_row(title="  ", completed_at=NOW)
        workouts.get_exercises.return_value = [
            {"id": 100, "exercise_id": 3, "order_index": 1, "note": None, "name": "Присед"},
            {"id": 101, "exercise_id": None, "order_index": 2, "note": None, "name": None},
        ]

        result = await service.workout_summary(1, "10")

        assert result["workout"] == {"id": 10, "title": "Без названия", "completed_at": NOW}
        assert result["exercises"] == [{"id": 3, "name": "Присед"}]

    @pytest.mark.asyncio
    async def test_summary_bad_id(self, service: SportService) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            await service.workout_summary(1, None)
        assert exc_info.value.reason == "BAD_WORKOUT_ID"


class TestSuggest:
    @pytest.mark.asyncio
    async def test_short_query_returns_nothing(self, service: SportService, workouts: AsyncMock) -> None:
        assert await service.suggest_exercises(1, " ж ") == []
        workouts.suggest_exercises.assert_not_called()

    @pytest.mark.asyncio
    async def test_suggest(self, service: SportService, workouts: AsyncMock) -> None:
        workouts.suggest_exercises.return_value = [{"id": 4, "name": "Жим лёжа"}]

        assert await service.suggest_exercises(1, "жим") == [{"id": 4, "name": "Жим лёжа"}]
        workouts.suggest_exercises.assert_awaited_once_with(1, "жим", 8)


class TestExercises:
    """Тесты справочника упражнений."""

    @pytest.mark.asyncio
    async def test_create(self, service: SportService, exercises: AsyncMock) -> None:
        result = await service.create_exercise(1, ExerciseIn(name=" Присед ", loadType="external"))

        exercises.create.assert_awaited_once_with(1, "Присед", "external")
        assert result["id"] == 3

    @pytest.mark.asyncio
    async def test_duplicate_after_normalization(self, service: SportService, exercises: AsyncMock) -> None:
        exercises.list_by_load_type.return_value = [{"id": 3, "name": "Жим  Лёжа", "load_type": "external"}]

        with pytest.raises(Conflict) as exc_info:
            await service.create_exercise(1, ExerciseIn(name="жим лёжа", loadType="external"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.to_body()["duplicate"]["id"] == 3
        exercises.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_validation(self, service: SportService) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            await service.create_exercise(1, ExerciseIn(name="", loadType="external"))
        assert exc_info.value.reason == "NO_NAME"

        with pytest.raises(MalformedInput) as exc_info:
            await service.create_exercise(1, ExerciseIn(name="Бег", loadType="cardio"))
        assert exc_info.value.reason == "BAD_LOAD_TYPE"

    @pytest.mark.asyncio
    async def test_delete_missing(self, service: SportService, exercises: AsyncMock) -> None:
        exercises.delete.return_value = False
        with pytest.raises(NotFound):
            await service.delete_exercise(1, 3)
