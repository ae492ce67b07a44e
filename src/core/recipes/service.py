# src/core/recipes/service.py
"""
Сервис раздела "Рецепты".
Нормализация ввода, формирование ответов, ссылки на фото в публичном хранилище.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Optional
from urllib.parse import quote

from asyncpg import Record

from src.common.constants import (
    CATEGORY_ORDER_STEP,
    NONE_CATEGORY_ID,
    PREPS_DEFAULT_LIMIT,
    PREPS_MAX_LIMIT,
    PrepUnit,
    TypeMsg,
)
from src.common.errors import Conflict, MalformedInput, NotFound
from src.common.logger import log_info
from src.common.parsing import (
    clamp_non_negative,
    clean_str,
    fits_int32,
    slugify_id,
    time_parts_to_minutes,
    to_float,
    to_id_or_none,
    to_int_or_none,
    to_num_or_none,
)
from src.core.recipes.models import (
    CategoryCreateIn,
    CategoryRenameIn,
    CategoryReorderIn,
    PrepCategoryCreateIn,
    PrepCategoryEditIn,
    PrepCountsIn,
    PrepCreateIn,
    PrepEditIn,
    RecipeDraft,
    RecipeIn,
    StepDraft,
    TimePartsIn,
)
from src.core.recipes.repository import (
    CategoryRepository,
    PrepCategoryRepository,
    PrepRepository,
    RecipeRepository,
)


def public_url_for_path(base_url: str, bucket: str, path: Optional[str]) -> Optional[str]:
    """Публичная ссылка на файл в хранилище или None."""
    if not base_url or not path:
        return None
    return f"{base_url.rstrip('/')}/storage/v1/object/public/{bucket}/{quote(path, safe='/')}"


def normalize_unit(value: Any) -> str:
    return PrepUnit.PIECES.value if clean_str(value) == PrepUnit.PIECES.value else PrepUnit.PORTIONS.value


def category_to_dict(row: Record) -> dict[str, Any]:
    return {"id": row["id"], "title": row["title"], "order_index": row["order_index"]}


def prep_category_to_dict(row: Record) -> dict[str, Any]:
    return {"id": row["id"], "title": row["title"], "created_at": row["created_at"]}


def prep_to_dict(row: Record) -> dict[str, Any]:
    return {
        "id": row["id"],
        "title": row["title"],
        "counts": row["counts"],
        "unit": normalize_unit(row["unit"]),
        "category_id": row["category_id"],
        "category_title": row["category_title"],
        "created_at": row["created_at"],
    }


def _minutes(explicit: Any, parts: Optional[TimePartsIn]) -> Optional[int]:
    if clean_str(explicit):
        minutes = to_int_or_none(explicit)
    else:
        minutes = time_parts_to_minutes(parts.model_dump() if parts else None)
    minutes = clamp_non_negative(minutes)
    if not fits_int32(minutes):
        raise MalformedInput("BAD_TIME")
    return minutes


def _non_negative(value: Any) -> Optional[float]:
    n = to_num_or_none(value)
    if n is None:
        return None
    return max(n, 0.0)


def build_recipe_draft(payload: RecipeIn) -> RecipeDraft:
    """
    Нормализует тело рецепта.

    Raises:
        MalformedInput: NO_TITLE, BAD_PORTIONS, BAD_TIME
    """
    title = clean_str(payload.title)
    if not title:
        raise MalformedInput("NO_TITLE")

    portions = clamp_non_negative(to_int_or_none(payload.portions))
    if not fits_int32(portions):
        raise MalformedInput("BAD_PORTIONS")

    category_ids: list[str] = []
    for raw in payload.category_ids or []:
        category_id = clean_str(raw)
        if category_id and category_id != NONE_CATEGORY_ID and category_id not in category_ids:
            category_ids.append(category_id)

    steps: list[StepDraft] = []
    for raw in payload.steps or []:
        if isinstance(raw, dict):
            text = clean_str(raw.get("text"))
            photo_path = clean_str(raw.get("photo_path")) or None
        else:
            text, photo_path = clean_str(raw), None
        if text:
            steps.append(StepDraft(text=text, photo_path=photo_path))

    kbyu = payload.kbyu
    return RecipeDraft(
        title=title,
        source_url=clean_str(payload.url) or None,
        portions=portions,
        prep_time_min=_minutes(payload.prep_time_min, payload.prep_time),
        cook_time_min=_minutes(payload.cook_time_min, payload.cook_time),
        photo_path=clean_str(payload.photo_path) or None,
        kcal=_non_negative(kbyu.kcal) if kbyu else None,
        b=_non_negative(kbyu.b) if kbyu else None,
        j=_non_negative(kbyu.j) if kbyu else None,
        u=_non_negative(kbyu.u) if kbyu else None,
        category_ids=category_ids,
        ingredients=[text for text in (clean_str(x) for x in payload.ingredients or []) if text],
        steps=steps,
    )


class RecipeService:
    """Операции раздела "Рецепты"."""

    def __init__(
        self,
        categories: CategoryRepository,
        recipes: RecipeRepository,
        preps: PrepRepository,
        prep_categories: PrepCategoryRepository,
        storage_url: str = "",
        bucket: str = "recipes",
    ) -> None:
        self._categories = categories
        self._recipes = recipes
        self._preps = preps
        self._prep_categories = prep_categories
        self._storage_url = storage_url
        self._bucket = bucket

    def photo_url(self, path: Optional[str]) -> Optional[str]:
        return public_url_for_path(self._storage_url, self._bucket, path)

    # ---------- категории ----------

    async def catalog(self) -> list[dict[str, Any]]:
        return [category_to_dict(row) for row in await self._categories.list_catalog()]

    async def list_categories(self, user_id: int) -> list[dict[str, Any]]:
        return [category_to_dict(row) for row in await self._categories.list_for_user(user_id)]

    async def create_category(self, user_id: int, payload: CategoryCreateIn) -> dict[str, Any]:
        title = clean_str(payload.title)
        if not title:
            raise MalformedInput("NO_TITLE")

        category_id = f"{user_id}-{slugify_id(title)}"
        fallback_id = f"{category_id}-{int(time.time() * 1000)}"
        row = await self._categories.create(user_id, category_id, fallback_id, title)
        return category_to_dict(row)

    async def rename_category(self, user_id: int, payload: CategoryRenameIn) -> dict[str, Any]:
        category_id = clean_str(payload.id)
        title = clean_str(payload.title)
        if not category_id:
            raise MalformedInput("NO_ID")
        if not title:
            raise MalformedInput("NO_TITLE")

        row = await self._categories.rename(user_id, category_id, title)
        if row is None:
            raise NotFound()
        return category_to_dict(row)

    async def reorder_categories(self, user_id: int, payload: CategoryReorderIn) -> list[str]:
        """
        Новый порядок категорий с шагом order_index 10.
        Псевдо-категория "без категории" и чужие/несуществующие id пропускаются.

        Raises:
            MalformedInput: NO_ORDER, NO_VALID_IDS
        """
        if not payload.order:
            raise MalformedInput("NO_ORDER")

        ids: list[str] = []
        for item in payload.order:
            category_id = clean_str(item.id)
            if category_id and category_id != NONE_CATEGORY_ID and category_id not in ids:
                ids.append(category_id)
        if not ids:
            raise MalformedInput("NO_VALID_IDS")

        ordered = await self._categories.reorder(user_id, ids, CATEGORY_ORDER_STEP)
        if not ordered:
            raise MalformedInput("NO_VALID_IDS")
        return ordered

    async def delete_category(self, user_id: int, raw_id: Any) -> None:
        category_id = clean_str(raw_id)
        if not category_id:
            raise MalformedInput("NO_ID")
        if category_id == NONE_CATEGORY_ID:
            raise MalformedInput("CANNOT_DELETE_NONE")
        if not await self._categories.delete(user_id, category_id):
            raise NotFound()

    async def category_stats(self, user_id: int) -> dict[str, Any]:
        categories = await self.list_categories(user_id)
        counts = await self._categories.recipe_counts(user_id)
        none_count = await self._categories.uncategorized_count(user_id)
        return {
            "categories": categories,
            "countsByCatId": {row["category_id"]: row["cnt"] for row in counts},
            "noneCount": none_count or 0,
        }

    async def prep_categories(self, user_id: int) -> list[dict[str, Any]]:
        rows = await self._categories.list_by_title(user_id)
        return [
            {"id": row["id"], "title": clean_str(row["title"])}
            for row in rows
            if clean_str(row["title"])
        ]

    # ---------- рецепты ----------

    async def list_recipes(self, user_id: int, view: Any = None) -> list[dict[str, Any]]:
        """
        Args:
            view: meta (по умолчанию) | ids
        """
        rows = await self._recipes.list_for_user(user_id)
        if clean_str(view) == "ids":
            return [{"id": row["id"]} for row in rows]

        by_recipe: dict[int, list[dict[str, Any]]] = {}
        for link in await self._recipes.categories_for([row["id"] for row in rows]):
            by_recipe.setdefault(link["recipe_id"], []).append({"id": link["id"], "title": link["title"]})

        return [
            {
                "id": row["id"],
                "title": row["title"] or "",
                "photo_path": row["photo_path"],
                "photo_url": self.photo_url(row["photo_path"]),
                "prep_time_min": row["prep_time_min"],
                "cook_time_min": row["cook_time_min"],
                "categories": by_recipe.get(row["id"], []),
            }
            for row in rows
        ]

    async def get_recipe(self, user_id: int, raw_id: Any, view: Any = None) -> dict[str, Any]:
        """
        Рецепт пользователя.

        Args:
            view: full (по умолчанию) | meta | photo

        Raises:
            MalformedInput: BAD_ID
            NotFound: рецепта нет у этого пользователя
        """
        recipe_id = to_id_or_none(raw_id)
        if recipe_id is None:
            raise MalformedInput("BAD_ID")

        recipe = await self._recipes.get(user_id, recipe_id)
        if recipe is None:
            raise NotFound()

        photo_url = self.photo_url(recipe["photo_path"])
        view = clean_str(view) or "full"

        if view == "photo":
            return {"recipe_id": recipe["id"], "photo_path": recipe["photo_path"], "photo_url": photo_url}

        meta = {
            "id": recipe["id"],
            "title": recipe["title"],
            "portions": recipe["portions"],
            "prep_time_min": recipe["prep_time_min"],
            "cook_time_min": recipe["cook_time_min"],
            "photo_path": recipe["photo_path"],
            "photo_url": photo_url,
        }
        if view == "meta":
            return {"recipe": meta}

        ingredients = await self._recipes.get_ingredients(recipe_id)
        steps = await self._recipes.get_steps(recipe_id)
        categories = await self._recipes.categories_for([recipe_id])

        return {
            "recipe": {
                **meta,
                "source_url": recipe["source_url"],
                "kbyu": {
                    "kcal": to_float(recipe["kcal"]),
                    "b": to_float(recipe["b"]),
                    "j": to_float(recipe["j"]),
                    "u": to_float(recipe["u"]),
                },
                "created_at": recipe["created_at"],
                "updated_at": recipe["updated_at"],
            },
            "categories": [{"id": row["id"], "title": row["title"]} for row in categories],
            "ingredients": [{"id": row["id"], "pos": row["pos"], "text": row["text"]} for row in ingredients],
            "steps": [
                {
                    "id": row["id"],
                    "pos": row["pos"],
                    "text": row["text"],
                    "photo_path": row["photo_path"],
                    "photo_url": self.photo_url(row["photo_path"]),
                }
                for row in steps
            ],
        }

    async def create_recipe(self, user_id: int, payload: RecipeIn) -> dict[str, Any]:
        draft = build_recipe_draft(payload)
        recipe_id = await self._recipes.create(user_id, draft)
        await log_info(f"Рецепт {recipe_id} создан (user={user_id})", type_msg=TypeMsg.DEBUG)
        return {
            "recipe_id": recipe_id,
            "photo_path": draft.photo_path,
            "photo_url": self.photo_url(draft.photo_path),
            "step_photos": [
                {"pos": pos, "photo_path": s.photo_path, "photo_url": self.photo_url(s.photo_path)}
                for pos, s in enumerate(draft.steps, start=1)
            ],
        }

    async def update_recipe(self, user_id: int, raw_id: Any, payload: RecipeIn) -> dict[str, Any]:
        recipe_id = to_id_or_none(raw_id)
        if recipe_id is None:
            raise MalformedInput("BAD_ID")

        draft = build_recipe_draft(payload)
        steps = await self._recipes.update(user_id, recipe_id, draft)
        if steps is None:
            raise NotFound()
        return {
            "recipe_id": recipe_id,
            "step_ids": [{"id": row["id"], "pos": row["pos"]} for row in steps],
        }

    async def delete_recipe(self, user_id: int, raw_id: Any) -> int:
        recipe_id = to_id_or_none(raw_id)
        if recipe_id is None:
            raise MalformedInput("BAD_ID")
        if not await self._recipes.delete(user_id, recipe_id):
            raise NotFound()
        await log_info(f"Рецепт {recipe_id} удалён (user={user_id})", type_msg=TypeMsg.DEBUG)
        return recipe_id

    # ---------- заготовки ----------

    async def list_preps(self, user_id: int, view: Any = None, limit: Any = None) -> list[dict[str, Any]]:
        """
        Args:
            view: full (по умолчанию) | stock | out
            limit: 1..2000, по умолчанию 500
        """
        view = clean_str(view) or "full"
        n = to_int_or_none(limit)
        if n is None:
            n = PREPS_DEFAULT_LIMIT
        n = max(1, min(PREPS_MAX_LIMIT, n))

        rows = await self._preps.list_for_user(user_id, view, n)
        return [prep_to_dict(row) for row in rows]

    async def _owned_category_or_none(self, user_id: int, raw: Any) -> Optional[str]:
        category_id = clean_str(raw)
        if not category_id or category_id == NONE_CATEGORY_ID:
            return None
        if not await self._preps.category_exists(user_id, category_id):
            raise MalformedInput("BAD_CATEGORY")
        return category_id

    async def create_prep(self, user_id: int, payload: PrepCreateIn) -> dict[str, Any]:
        """
        Raises:
            MalformedInput: NO_TITLE, BAD_COUNTS, BAD_CATEGORY
        """
        title = clean_str(payload.title)
        if not title:
            raise MalformedInput("NO_TITLE")

        raw_counts = next(
            (v for v in (payload.counts, payload.count, payload.portions) if v is not None),
            0,
        )
        counts = to_int_or_none(raw_counts)
        if counts is None or counts < 0 or not fits_int32(counts):
            raise MalformedInput("BAD_COUNTS")

        category_id = await self._owned_category_or_none(user_id, payload.category_id)
        row = await self._preps.create(user_id, title, counts, normalize_unit(payload.unit), category_id)
        return prep_to_dict(row)

    async def update_prep_counts(self, user_id: int, payload: PrepCountsIn) -> dict[str, Any]:
        """
        Абсолютное значение counts имеет приоритет над delta.

        Raises:
            MalformedInput: BAD_ID, NO_COUNTS_OR_DELTA, BAD_COUNTS, BAD_DELTA
            NotFound: заготовки нет у пользователя
        """
        prep_id = to_id_or_none(payload.id)
        if prep_id is None:
            raise MalformedInput("BAD_ID")

        counts = to_int_or_none(payload.counts)
        delta = to_int_or_none(payload.delta)
        if counts is None and delta is None:
            raise MalformedInput("NO_COUNTS_OR_DELTA")

        if counts is not None:
            if counts < 0 or not fits_int32(counts):
                raise MalformedInput("BAD_COUNTS")
            row = await self._preps.set_counts(user_id, prep_id, counts)
        else:
            if not fits_int32(delta):
                raise MalformedInput("BAD_DELTA")
            row = await self._preps.add_delta(user_id, prep_id, delta)

        if row is None:
            raise NotFound()
        return prep_to_dict(row)

    async def edit_prep(self, user_id: int, payload: PrepEditIn) -> dict[str, Any]:
        prep_id = to_id_or_none(payload.id)
        if prep_id is None:
            raise MalformedInput("BAD_ID")

        title = clean_str(payload.title)
        if not title:
            raise MalformedInput("NO_TITLE")

        counts = to_int_or_none(payload.counts if payload.counts is not None else 0)
        if counts is None or counts < 0 or not fits_int32(counts):
            raise MalformedInput("BAD_COUNTS")

        category_id = await self._owned_category_or_none(user_id, payload.category_id)
        row = await self._preps.edit(user_id, prep_id, title, counts, normalize_unit(payload.unit), category_id)
        if row is None:
            raise NotFound()
        return prep_to_dict(row)

    async def delete_prep(self, user_id: int, raw_id: Any) -> None:
        prep_id = to_id_or_none(raw_id)
        if prep_id is None:
            raise MalformedInput("BAD_ID")
        if not await self._preps.delete(user_id, prep_id):
            raise NotFound()

    # ---------- категории заготовок ----------

    async def list_prep_category_items(self, user_id: int) -> list[dict[str, Any]]:
        rows = await self._prep_categories.list_for_user(user_id)
        return [
            {"id": row["id"], "title": clean_str(row["title"])}
            for row in rows
            if clean_str(row["title"])
        ]

    async def create_prep_category(self, user_id: int, payload: PrepCategoryCreateIn) -> dict[str, Any]:
        """
        Raises:
            MalformedInput: NO_TITLE
            Conflict: TITLE_EXISTS (название без учёта регистра), ID_EXISTS
        """
        title = clean_str(payload.title)
        if not title:
            raise MalformedInput("NO_TITLE")
        category_id = clean_str(payload.id) or f"pc-{int(time.time() * 1000)}-{secrets.token_hex(3)}"

        if await self._prep_categories.title_taken(user_id, title):
            raise Conflict("TITLE_EXISTS", "title_exists")

        row = await self._prep_categories.create(user_id, category_id, title)
        if row is None:
            raise Conflict("ID_EXISTS", "id_exists")
        await log_info(f"Категория заготовок {category_id} создана (user={user_id})", type_msg=TypeMsg.DEBUG)
        return prep_category_to_dict(row)

    async def edit_prep_category(self, user_id: int, payload: PrepCategoryEditIn) -> dict[str, Any]:
        category_id = clean_str(payload.id)
        title = clean_str(payload.title)
        if not category_id:
            raise MalformedInput("NO_ID")
        if not title:
            raise MalformedInput("NO_TITLE")

        if await self._prep_categories.title_taken(user_id, title, exclude_id=category_id):
            raise Conflict("TITLE_EXISTS", "title_exists")

        row = await self._prep_categories.rename(user_id, category_id, title)
        if row is None:
            raise NotFound()
        return prep_category_to_dict(row)

    async def delete_prep_category(self, user_id: int, raw_id: Any) -> str:
        category_id = clean_str(raw_id)
        if not category_id:
            raise MalformedInput("NO_ID")
        if not await self._prep_categories.delete(user_id, category_id):
            raise NotFound()
        return category_id
