# src/core/recipes/repository.py
"""
Репозитории раздела "Рецепты": категории, рецепты, заготовки и их категории.
"""

from __future__ import annotations

from typing import Optional

from asyncpg import Connection, Record

from src.common.errors import StoreError
from src.core.recipes.models import RecipeDraft, StepDraft
from src.core.users.revision import bump_revision
from src.infra.database import DatabaseManager

RECIPE_COLUMNS = (
    "id, title, source_url, portions, prep_time_min, cook_time_min, photo_path, "
    "kcal, b, j, u, created_at, updated_at"
)

# Заготовка вместе с названием категории (категория только того же владельца)
_PREP_SELECT = """
    SELECT p.id, p.title, p.counts, p.unit, p.category_id, c.title AS category_title, p.created_at
    FROM {source} p
    LEFT JOIN preps_categories c ON c.id = p.category_id AND c.user_id = p.user_id
"""


class CategoryRepository:
    """Категории рецептов пользователя и общий каталог."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_catalog(self) -> list[Record]:
        """Общий каталог категорий (без фильтра по владельцу)."""
        return await self._db.fetch(
            "SELECT id, title, order_index FROM category_catalog ORDER BY order_index, title, id"
        )

    async def list_for_user(self, user_id: int) -> list[Record]:
        return await self._db.fetch(
            """
            SELECT id, title, order_index
            FROM recipe_categories
            WHERE user_id = $1
            ORDER BY order_index, title, id
            """,
            user_id,
        )

    async def list_by_title(self, user_id: int) -> list[Record]:
        return await self._db.fetch(
            "SELECT id, title FROM recipe_categories WHERE user_id = $1 ORDER BY title, id",
            user_id,
        )

    async def create(self, user_id: int, category_id: str, fallback_id: str, title: str) -> Record:
        """
        Создаёт категорию в конце списка.

        Если category_id уже занят, используется fallback_id.
        """
        async with self._db.transaction() as conn:
            next_index = await conn.fetchval(
                "SELECT COALESCE(MAX(order_index), -1) + 1 FROM recipe_categories WHERE user_id = $1",
                user_id,
            )
            row = None
            for candidate in (category_id, fallback_id):
                row = await conn.fetchrow(
                    """
                    INSERT INTO recipe_categories (id, user_id, title, order_index)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (id) DO NOTHING
                    RETURNING id, title, order_index
                    """,
                    candidate,
                    user_id,
                    title,
                    next_index,
                )
                if row is not None:
                    break
            if row is None:
                raise StoreError(message=f"category id is taken: {fallback_id}")
            await bump_revision(conn, user_id)
        return row

    async def rename(self, user_id: int, category_id: str, title: str) -> Optional[Record]:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                """
                UPDATE recipe_categories SET title = $3
                WHERE id = $1 AND user_id = $2
                RETURNING id, title, order_index
                """,
                category_id,
                user_id,
                title,
            )
            if row is None:
                return None
            await bump_revision(conn, user_id)
        return row

    async def reorder(self, user_id: int, category_ids: list[str], step: int) -> list[str]:
        """
        Проставляет order_index = позиция * step для существующих категорий пользователя.

        Returns:
            id категорий, которые были обновлены, в новом порядке
        """
        async with self._db.transaction() as conn:
            rows = await conn.fetch(
                "SELECT id FROM recipe_categories WHERE user_id = $1 AND id = ANY($2::text[])",
                user_id,
                category_ids,
            )
            existing = {row["id"] for row in rows}
            ordered = [category_id for category_id in category_ids if category_id in existing]
            if not ordered:
                return []

            await conn.executemany(
                "UPDATE recipe_categories SET order_index = $3 WHERE id = $1 AND user_id = $2",
                [(category_id, user_id, i * step) for i, category_id in enumerate(ordered)],
            )
            await bump_revision(conn, user_id)
        return ordered

    async def delete(self, user_id: int, category_id: str) -> bool:
        """Удаляет категорию; связи с рецептами удаляются каскадом."""
        async with self._db.transaction() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM recipe_categories WHERE id = $1 AND user_id = $2 RETURNING id",
                category_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True

    async def recipe_counts(self, user_id: int) -> list[Record]:
        """Число рецептов пользователя в каждой категории."""
        return await self._db.fetch(
            """
            SELECT rc.category_id, COUNT(*) AS cnt
            FROM recipes_to_categories rc
            JOIN recipes r ON r.id = rc.recipe_id
            WHERE r.user_id = $1
            GROUP BY rc.category_id
            ORDER BY rc.category_id
            """,
            user_id,
        )

    async def uncategorized_count(self, user_id: int) -> int:
        return await self._db.fetchval(
            """
            SELECT COUNT(*)
            FROM recipes r
            WHERE r.user_id = $1
              AND NOT EXISTS (SELECT 1 FROM recipes_to_categories rc WHERE rc.recipe_id = r.id)
            """,
            user_id,
        )


class RecipeRepository:
    """Рецепты пользователя с ингредиентами, шагами и категориями."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int) -> list[Record]:
        return await self._db.fetch(
            """
            SELECT id, title, photo_path, prep_time_min, cook_time_min, created_at
            FROM recipes
            WHERE user_id = $1
            ORDER BY created_at DESC, id DESC
            """,
            user_id,
        )

    async def categories_for(self, recipe_ids: list[int]) -> list[Record]:
        """Категории рецептов (recipe_id, id, title)."""
        if not recipe_ids:
            return []
        return await self._db.fetch(
            """
            SELECT rc.recipe_id, c.id, c.title
            FROM recipes_to_categories rc
            JOIN recipe_categories c ON c.id = rc.category_id
            WHERE rc.recipe_id = ANY($1::bigint[])
            ORDER BY rc.recipe_id, c.order_index, c.title, c.id
            """,
            recipe_ids,
        )

    async def get(self, user_id: int, recipe_id: int) -> Optional[Record]:
        return await self._db.fetchrow(
            f"SELECT {RECIPE_COLUMNS} FROM recipes WHERE id = $1 AND user_id = $2",
            recipe_id,
            user_id,
        )

    async def get_ingredients(self, recipe_id: int) -> list[Record]:
        return await self._db.fetch(
            "SELECT id, pos, text FROM recipe_ingredients WHERE recipe_id = $1 ORDER BY pos, id",
            recipe_id,
        )

    async def get_steps(self, recipe_id: int) -> list[Record]:
        return await self._db.fetch(
            "SELECT id, pos, text, photo_path FROM recipe_steps WHERE recipe_id = $1 ORDER BY pos, id",
            recipe_id,
        )

    async def create(self, user_id: int, draft: RecipeDraft) -> int:
        """Создаёт рецепт со всеми частями, возвращает id."""
        async with self._db.transaction() as conn:
            recipe_id = await conn.fetchval(
                """
                INSERT INTO recipes (user_id, title, source_url, portions, prep_time_min,
                                     cook_time_min, photo_path, kcal, b, j, u)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                RETURNING id
                """,
                user_id,
                draft.title,
                draft.source_url,
                draft.portions,
                draft.prep_time_min,
                draft.cook_time_min,
                draft.photo_path,
                draft.kcal,
                draft.b,
                draft.j,
                draft.u,
            )
            await self._link_categories(conn, user_id, recipe_id, draft.category_ids)
            await self._insert_ingredients(conn, recipe_id, draft.ingredients, start=1)
            await self._insert_steps(conn, recipe_id, draft.steps)
            await bump_revision(conn, user_id)
        return recipe_id

    async def update(self, user_id: int, recipe_id: int, draft: RecipeDraft) -> Optional[list[Record]]:
        """
        Обновляет рецепт.

        Ингредиенты обновляются по позиции. Шаги тоже обновляются по позиции
        (фото шагов сохраняются), а при изменении их числа пересоздаются.

        Returns:
            Шаги (id, pos) после обновления или None, если рецепт не найден
        """
        async with self._db.transaction() as conn:
            updated = await conn.fetchval(
                """
                UPDATE recipes
                SET title = $3, source_url = $4, portions = $5, prep_time_min = $6,
                    cook_time_min = $7, photo_path = $8, kcal = $9, b = $10, j = $11, u = $12,
                    updated_at = now()
                WHERE id = $1 AND user_id = $2
                RETURNING id
                """,
                recipe_id,
                user_id,
                draft.title,
                draft.source_url,
                draft.portions,
                draft.prep_time_min,
                draft.cook_time_min,
                draft.photo_path,
                draft.kcal,
                draft.b,
                draft.j,
                draft.u,
            )
            if updated is None:
                return None

            await conn.execute("DELETE FROM recipes_to_categories WHERE recipe_id = $1", recipe_id)
            await self._link_categories(conn, user_id, recipe_id, draft.category_ids)

            await self._sync_ingredients(conn, recipe_id, draft.ingredients)
            await self._sync_steps(conn, recipe_id, draft.steps)

            steps = await conn.fetch(
                "SELECT id, pos FROM recipe_steps WHERE recipe_id = $1 ORDER BY pos, id",
                recipe_id,
            )
            await bump_revision(conn, user_id)
        return steps

    async def delete(self, user_id: int, recipe_id: int) -> bool:
        """Удаляет рецепт; ингредиенты, шаги и связи удаляются каскадом."""
        async with self._db.transaction() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM recipes WHERE id = $1 AND user_id = $2 RETURNING id",
                recipe_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True

    @staticmethod
    async def _link_categories(conn: Connection, user_id: int, recipe_id: int, category_ids: list[str]) -> None:
        if not category_ids:
            return
        # связываются только категории этого же пользователя
        await conn.execute(
            """
            INSERT INTO recipes_to_categories (recipe_id, category_id)
            SELECT $1, id FROM recipe_categories
            WHERE user_id = $2 AND id = ANY($3::text[])
            ON CONFLICT DO NOTHING
            """,
            recipe_id,
            user_id,
            category_ids,
        )

    @staticmethod
    async def _insert_ingredients(conn: Connection, recipe_id: int, ingredients: list[str], start: int) -> None:
        if not ingredients:
            return
        await conn.executemany(
            "INSERT INTO recipe_ingredients (recipe_id, pos, text) VALUES ($1, $2, $3)",
            [(recipe_id, pos, text) for pos, text in enumerate(ingredients, start=start)],
        )

    @staticmethod
    async def _insert_steps(conn: Connection, recipe_id: int, steps: list[StepDraft]) -> None:
        if not steps:
            return
        await conn.executemany(
            "INSERT INTO recipe_steps (recipe_id, pos, text, photo_path) VALUES ($1, $2, $3, $4)",
            [(recipe_id, pos, s.text, s.photo_path) for pos, s in enumerate(steps, start=1)],
        )

    async def _sync_ingredients(self, conn: Connection, recipe_id: int, ingredients: list[str]) -> None:
        existing = await conn.fetch(
            "SELECT id FROM recipe_ingredients WHERE recipe_id = $1 ORDER BY pos, id",
            recipe_id,
        )
        existing_ids = [row["id"] for row in existing]

        kept = min(len(existing_ids), len(ingredients))
        if kept:
            await conn.executemany(
                "UPDATE recipe_ingredients SET text = $2, pos = $3 WHERE id = $1",
                [(existing_ids[i], ingredients[i], i + 1) for i in range(kept)],
            )
        await self._insert_ingredients(conn, recipe_id, ingredients[kept:], start=kept + 1)
        if len(existing_ids) > len(ingredients):
            await conn.execute(
                "DELETE FROM recipe_ingredients WHERE id = ANY($1::bigint[])",
                existing_ids[len(ingredients):],
            )

    async def _sync_steps(self, conn: Connection, recipe_id: int, steps: list[StepDraft]) -> None:
        existing = await conn.fetch(
            "SELECT id FROM recipe_steps WHERE recipe_id = $1 ORDER BY pos, id",
            recipe_id,
        )
        existing_ids = [row["id"] for row in existing]

        if len(existing_ids) != len(steps):
            await conn.execute("DELETE FROM recipe_steps WHERE recipe_id = $1", recipe_id)
            await self._insert_steps(conn, recipe_id, steps)
            return

        # фото шагов не трогаем, если клиент его не прислал
        await conn.executemany(
            """
            UPDATE recipe_steps
            SET text = $2, pos = $3, photo_path = COALESCE($4, photo_path)
            WHERE id = $1
            """,
            [(existing_ids[i], s.text, i + 1, s.photo_path) for i, s in enumerate(steps)],
        )


class PrepRepository:
    """Заготовки (готовые порции/штуки) пользователя."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int, view: str, limit: int) -> list[Record]:
        """
        Args:
            view: full | stock (counts > 0) | out (counts <= 0)
            limit: Максимум строк
        """
        condition = ""
        if view == "stock":
            condition = "AND p.counts > 0"
        elif view == "out":
            condition = "AND p.counts <= 0"

        return await self._db.fetch(
            _PREP_SELECT.format(source="recipes_preps")
            + f"""
            WHERE p.user_id = $1 {condition}
            ORDER BY p.created_at DESC, p.id DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )

    async def category_exists(self, user_id: int, category_id: str) -> bool:
        found = await self._db.fetchval(
            "SELECT 1 FROM preps_categories WHERE id = $1 AND user_id = $2",
            category_id,
            user_id,
        )
        return found is not None

    async def create(
        self,
        user_id: int,
        title: str,
        counts: int,
        unit: str,
        category_id: Optional[str],
    ) -> Record:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                """
                WITH p AS (
                    INSERT INTO recipes_preps (user_id, title, counts, unit, category_id)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING *
                )
                """
                + _PREP_SELECT.format(source="p"),
                user_id,
                title,
                counts,
                unit,
                category_id,
            )
            await bump_revision(conn, user_id)
        return row

    async def set_counts(self, user_id: int, prep_id: int, counts: int) -> Optional[Record]:
        return await self._update(
            user_id,
            "UPDATE recipes_preps SET counts = $3 WHERE id = $1 AND user_id = $2 RETURNING *",
            prep_id,
            counts,
        )

    async def add_delta(self, user_id: int, prep_id: int, delta: int) -> Optional[Record]:
        """Атомарно меняет остаток на delta в пределах 0..INTEGER max."""
        return await self._update(
            user_id,
            """
            UPDATE recipes_preps
            SET counts = LEAST(2147483647, GREATEST(0, counts::bigint + $3::bigint))::integer
            WHERE id = $1 AND user_id = $2
            RETURNING *
            """,
            prep_id,
            delta,
        )

    async def edit(
        self,
        user_id: int,
        prep_id: int,
        title: str,
        counts: int,
        unit: str,
        category_id: Optional[str],
    ) -> Optional[Record]:
        return await self._update(
            user_id,
            """
            UPDATE recipes_preps SET title = $3, counts = $4, unit = $5, category_id = $6
            WHERE id = $1 AND user_id = $2
            RETURNING *
            """,
            prep_id,
            title,
            counts,
            unit,
            category_id,
        )

    async def delete(self, user_id: int, prep_id: int) -> bool:
        async with self._db.transaction() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM recipes_preps WHERE id = $1 AND user_id = $2 RETURNING id",
                prep_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True

    async def _update(self, user_id: int, update_sql: str, prep_id: int, *args: object) -> Optional[Record]:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                f"WITH p AS ({update_sql})" + _PREP_SELECT.format(source="p"),
                prep_id,
                user_id,
                *args,
            )
            if row is None:
                return None
            await bump_revision(conn, user_id)
        return row


class PrepCategoryRepository:
    """Категории заготовок (отдельные от категорий рецептов)."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def list_for_user(self, user_id: int) -> list[Record]:
        return await self._db.fetch(
            """
            SELECT id, title, created_at
            FROM preps_categories
            WHERE user_id = $1
            ORDER BY title, id
            """,
            user_id,
        )

    async def title_taken(self, user_id: int, title: str, exclude_id: Optional[str] = None) -> bool:
        """Есть ли у пользователя категория с тем же названием без учёта регистра."""
        found = await self._db.fetchval(
            """
            SELECT 1 FROM preps_categories
            WHERE user_id = $1 AND lower(title) = lower($2)
              AND ($3::text IS NULL OR id <> $3::text)
            LIMIT 1
            """,
            user_id,
            title,
            exclude_id,
        )
        return found is not None

    async def create(self, user_id: int, category_id: str, title: str) -> Optional[Record]:
        """
        Returns:
            Новая категория или None, если id уже занят
        """
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO preps_categories (id, user_id, title)
                VALUES ($1, $2, $3)
                ON CONFLICT (id) DO NOTHING
                RETURNING id, title, created_at
                """,
                category_id,
                user_id,
                title,
            )
            if row is None:
                return None
            await bump_revision(conn, user_id)
        return row

    async def rename(self, user_id: int, category_id: str, title: str) -> Optional[Record]:
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                """
                UPDATE preps_categories SET title = $3
                WHERE id = $1 AND user_id = $2
                RETURNING id, title, created_at
                """,
                category_id,
                user_id,
                title,
            )
            if row is None:
                return None
            await bump_revision(conn, user_id)
        return row

    async def delete(self, user_id: int, category_id: str) -> bool:
        """Удаляет категорию; у заготовок category_id обнуляется внешним ключом."""
        async with self._db.transaction() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM preps_categories WHERE id = $1 AND user_id = $2 RETURNING id",
                category_id,
                user_id,
            )
            if deleted is None:
                return False
            await bump_revision(conn, user_id)
        return True
