# tests/core/test_repositories.py
"""
Тесты SQL-репозиториев на мок-БД: владение, порядок выдачи и ревизия.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.common.errors import StoreError
from src.core.recipes import CategoryRepository, PrepCategoryRepository, PrepRepository, RecipeRepository
from src.core.sport import ExerciseRepository, ProfileRepository, WorkoutRepository
from src.core.sport.models import MeasurementDraft, WorkoutDraft
from src.core.tasks import ProjectRepository, TaskRepository
from src.core.users import RevisionTracker, UserRepository, bump_revision


def bump_calls(conn: MagicMock) -> list:
    return [c for c in conn.fetchval.await_args_list if "app_rev = app_rev + 1" in c.args[0]]


class TestRevision:
    """Ревизия пользователя."""

    @pytest.mark.asyncio
    async def test_bump_returns_new_rev(self, mock_conn: MagicMock) -> None:
        mock_conn.fetchval.return_value = 8

        assert await bump_revision(mock_conn, 42) == 8

        sql, user_id = mock_conn.fetchval.await_args.args
        assert "GREATEST(app_updated_at, now())" in sql
        assert user_id == 42

    @pytest.mark.asyncio
    async def test_bump_missing_user(self, mock_conn: MagicMock) -> None:
        mock_conn.fetchval.return_value = None
        with pytest.raises(StoreError):
            await bump_revision(mock_conn, 42)

    @pytest.mark.asyncio
    async def test_current(self, mock_db: MagicMock) -> None:
        mock_db.fetchrow.return_value = {"app_rev": 4, "app_updated_at": None}

        revision = await RevisionTracker(mock_db).current(42)

        assert revision.rev == 4

    @pytest.mark.asyncio
    async def test_current_missing_user(self, mock_db: MagicMock) -> None:
        with pytest.raises(StoreError):
            await RevisionTracker(mock_db).current(42)


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_upsert(self, mock_db: MagicMock, user_record: dict) -> None:
        mock_db.fetchrow.return_value = user_record

        user = await UserRepository(mock_db).upsert_telegram_user(777, "tester", "Test")

        sql = mock_db.fetchrow.await_args.args[0]
        assert "ON CONFLICT (tg_id)" in sql
        assert user.id == 42
        assert user.username == "tester"

    @pytest.mark.asyncio
    async def test_get_by_id(self, mock_db: MagicMock, user_record: dict) -> None:
        mock_db.fetchrow.return_value = user_record

        user = await UserRepository(mock_db).get_by_id(42)

        sql, user_id = mock_db.fetchrow.await_args.args
        assert "WHERE id = $1" in sql
        assert user_id == 42
        assert user.first_name == "Test"

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, mock_db: MagicMock) -> None:
        assert await UserRepository(mock_db).get_by_id(42) is None


class TestDeleteAndRevision:
    """Удаление: ревизия растёт только когда строка действительно удалена."""

    @pytest.mark.asyncio
    async def test_delete_workout_bumps(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchval.side_effect = [10, 5]

        assert await WorkoutRepository(mock_db).delete(42, 10) is True

        delete_sql, workout_id, user_id = mock_conn.fetchval.await_args_list[0].args
        assert "user_id = $2" in delete_sql
        assert (workout_id, user_id) == (10, 42)
        assert len(bump_calls(mock_conn)) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_no_bump(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchval.return_value = None

        assert await WorkoutRepository(mock_db).delete(42, 10) is False
        assert bump_calls(mock_conn) == []

    @pytest.mark.parametrize(
        "repo_cls, key",
        [
            (ExerciseRepository, 3),
            (RecipeRepository, 5),
            (PrepRepository, 8),
            (ProjectRepository, 2),
            (CategoryRepository, "42-супы"),
            (PrepCategoryRepository, "pc-1"),
        ],
    )
    @pytest.mark.asyncio
    async def test_delete_missing_everywhere(self, mock_db: MagicMock, mock_conn: MagicMock, repo_cls, key) -> None:
        mock_conn.fetchval.return_value = None

        assert await repo_cls(mock_db).delete(42, key) is False
        assert bump_calls(mock_conn) == []


class TestOrdering:
    """Списки выдаются в детерминированном порядке и только владельцу."""

    @pytest.mark.asyncio
    async def test_workouts_order(self, mock_db: MagicMock) -> None:
        await WorkoutRepository(mock_db).list_for_user(42)

        sql, user_id = mock_db.fetch.await_args.args
        assert "ORDER BY workout_date DESC, created_at DESC, id DESC" in sql
        assert "WHERE user_id = $1" in sql
        assert user_id == 42

    @pytest.mark.asyncio
    async def test_exercises_order(self, mock_db: MagicMock) -> None:
        await ExerciseRepository(mock_db).list_for_user(42)
        assert "ORDER BY created_at DESC, id DESC" in mock_db.fetch.await_args.args[0]

    @pytest.mark.asyncio
    async def test_catalog_not_scoped(self, mock_db: MagicMock) -> None:
        await CategoryRepository(mock_db).list_catalog()

        sql = mock_db.fetch.await_args.args[0]
        assert "user_id" not in sql
        assert sql.rstrip().endswith("ORDER BY order_index, title, id")

    @pytest.mark.asyncio
    async def test_tasks_for_date(self, mock_db: MagicMock) -> None:
        await TaskRepository(mock_db).list_for_user(42, date(2025, 3, 1))

        sql, user_id, due = mock_db.fetch.await_args.args
        assert "ORDER BY id DESC" in sql
        assert (user_id, due) == (42, date(2025, 3, 1))

    @pytest.mark.asyncio
    async def test_suggest_escapes_like(self, mock_db: MagicMock) -> None:
        await WorkoutRepository(mock_db).suggest_exercises(42, "100%", 8)

        sql, user_id, pattern, limit = mock_db.fetch.await_args.args
        assert "ORDER BY name, id" in sql
        assert pattern == "%100\\%%"
        assert limit == 8

    @pytest.mark.asyncio
    async def test_missing_exercise_ids(self, mock_db: MagicMock) -> None:
        mock_db.fetch.return_value = [{"id": 3}]
        assert await WorkoutRepository(mock_db).missing_exercise_ids(42, [3, 4]) == [4]


class TestWorkoutWrite:
    @pytest.mark.asyncio
    async def test_update_foreign_workout(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        """Чужая тренировка не обновляется, детали не трогаются."""
        mock_conn.fetchrow.return_value = None
        draft = WorkoutDraft(workout_date=date(2025, 3, 1), type="cardio")

        assert await WorkoutRepository(mock_db).update(42, 10, draft) is None
        mock_conn.execute.assert_not_called()
        assert bump_calls(mock_conn) == []

    @pytest.mark.asyncio
    async def test_create_bumps_once(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchrow.return_value = {"id": 10}
        mock_conn.fetchval.return_value = 1
        draft = WorkoutDraft(workout_date=date(2025, 3, 1), type="cardio")

        await WorkoutRepository(mock_db).create(42, draft)

        assert len(bump_calls(mock_conn)) == 1


class TestTaskCreate:
    @pytest.mark.asyncio
    async def test_foreign_project(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchval.return_value = None

        assert await TaskRepository(mock_db).create(42, "a", None, 7) is None
        mock_conn.fetchrow.assert_not_called()


class TestPrepCounts:
    @pytest.mark.asyncio
    async def test_delta_clamped_to_integer_range(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchrow.return_value = {"id": 8}
        mock_conn.fetchval.return_value = 9

        await PrepRepository(mock_db).add_delta(42, 8, 5)

        sql, prep_id, user_id, delta = mock_conn.fetchrow.await_args.args
        assert "LEAST(2147483647, GREATEST(0, counts::bigint + $3::bigint))" in sql
        assert (prep_id, user_id, delta) == (8, 42, 5)
        assert len(bump_calls(mock_conn)) == 1

    @pytest.mark.asyncio
    async def test_prep_select_joins_prep_categories(self, mock_db: MagicMock) -> None:
        await PrepRepository(mock_db).list_for_user(42, "full", 500)

        sql = mock_db.fetch.await_args.args[0]
        assert "LEFT JOIN preps_categories c" in sql
        assert "recipe_categories" not in sql

    @pytest.mark.asyncio
    async def test_category_exists_checks_prep_categories(self, mock_db: MagicMock) -> None:
        mock_db.fetchval.return_value = 1

        assert await PrepRepository(mock_db).category_exists(42, "pc-1") is True
        assert "FROM preps_categories" in mock_db.fetchval.await_args.args[0]


class TestPrepCategoryRepository:
    @pytest.mark.asyncio
    async def test_title_taken_case_insensitive(self, mock_db: MagicMock) -> None:
        mock_db.fetchval.return_value = 1

        assert await PrepCategoryRepository(mock_db).title_taken(42, "Супы", exclude_id="pc-1") is True

        sql, user_id, title, exclude_id = mock_db.fetchval.await_args.args
        assert "lower(title) = lower($2)" in sql
        assert (user_id, title, exclude_id) == (42, "Супы", "pc-1")

    @pytest.mark.asyncio
    async def test_list_order(self, mock_db: MagicMock) -> None:
        await PrepCategoryRepository(mock_db).list_for_user(42)
        assert "ORDER BY title, id" in mock_db.fetch.await_args.args[0]

    @pytest.mark.asyncio
    async def test_create_taken_id_no_bump(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchrow.return_value = None

        assert await PrepCategoryRepository(mock_db).create(42, "pc-1", "Супы") is None
        assert bump_calls(mock_conn) == []

    @pytest.mark.asyncio
    async def test_rename_bumps(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchrow.return_value = {"id": "pc-1", "title": "Первое"}
        mock_conn.fetchval.return_value = 2

        await PrepCategoryRepository(mock_db).rename(42, "pc-1", "Первое")

        assert "WHERE id = $1 AND user_id = $2" in mock_conn.fetchrow.await_args.args[0]
        assert len(bump_calls(mock_conn)) == 1


class TestWorkoutRanges:
    """Выборки по диапазону дат для обзора и статистики."""

    @pytest.mark.asyncio
    async def test_list_in_range(self, mock_db: MagicMock) -> None:
        await WorkoutRepository(mock_db).list_in_range(42, date(2025, 3, 1), date(2025, 4, 1), 50)

        sql, *params = mock_db.fetch.await_args.args
        assert "workout_date >= $2 AND workout_date < $3" in sql
        assert "ORDER BY workout_date DESC, created_at DESC, id DESC" in sql
        assert "completed_at" in sql
        assert params == [42, date(2025, 3, 1), date(2025, 4, 1), 50]

    @pytest.mark.asyncio
    async def test_range_totals_only_done(self, mock_db: MagicMock) -> None:
        await WorkoutRepository(mock_db).range_totals(42, date(2025, 3, 10), date(2025, 3, 13))

        sql, *params = mock_db.fetchrow.await_args.args
        assert "status = 'done'" in sql
        assert "w.type = 'strength'" in sql
        assert params == [42, date(2025, 3, 10), date(2025, 3, 13)]


class TestProfileRepository:
    """Цель и замеры: одна транзакция, ревизия только при изменениях."""

    @pytest.mark.asyncio
    async def test_goal_and_weight_bump_once(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        # DELETE старого замера ничего не нашёл, затем ревизия
        mock_conn.fetchval.side_effect = [None, 12]
        weight = MeasurementDraft(kind="weight", value=80.5, unit="kg", measured_at=date(2025, 3, 12))

        assert await ProfileRepository(mock_db).apply(42, "Сушка", [weight]) is True

        goal_sql, user_id, goal = mock_conn.execute.await_args_list[0].args
        assert "ON CONFLICT (user_id) DO UPDATE" in goal_sql
        assert (user_id, goal) == (42, "Сушка")
        insert_args = mock_conn.execute.await_args_list[1].args
        assert "INSERT INTO sport_measurements" in insert_args[0]
        assert insert_args[1:] == (42, "weight", 80.5, "kg", date(2025, 3, 12))
        assert len(bump_calls(mock_conn)) == 1
        mock_db.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_clearing_missing_value_no_bump(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        empty = MeasurementDraft(kind="size_waist", value=None, unit="cm", measured_at=date(2025, 3, 12))

        assert await ProfileRepository(mock_db).apply(42, None, [empty]) is False

        mock_conn.execute.assert_not_called()
        assert bump_calls(mock_conn) == []

    @pytest.mark.asyncio
    async def test_clearing_existing_value_bumps(self, mock_db: MagicMock, mock_conn: MagicMock) -> None:
        mock_conn.fetchval.side_effect = [77, 13]
        empty = MeasurementDraft(kind="size_waist", value=None, unit="cm", measured_at=date(2025, 3, 12))

        assert await ProfileRepository(mock_db).apply(42, None, [empty]) is True

        delete_sql, *params = mock_conn.fetchval.await_args_list[0].args
        assert "DELETE FROM sport_measurements" in delete_sql
        assert params == [42, "size_waist", date(2025, 3, 12)]
        assert len(bump_calls(mock_conn)) == 1

    @pytest.mark.asyncio
    async def test_latest_by_kind_scoped(self, mock_db: MagicMock) -> None:
        await ProfileRepository(mock_db).latest_by_kind(42, ["weight"])

        sql, user_id, kinds = mock_db.fetch.await_args.args
        assert "DISTINCT ON (kind)" in sql
        assert (user_id, kinds) == (42, ["weight"])
