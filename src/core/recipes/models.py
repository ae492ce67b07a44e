# src/core/recipes/models.py
"""
Модели рецептов, категорий и заготовок.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ---------- категории ----------

class CategoryCreateIn(_Body):
    title: Any = None


class CategoryRenameIn(_Body):
    id: Any = None
    title: Any = None


class CategoryOrderItem(_Body):
    id: Any = None


class CategoryReorderIn(_Body):
    order: Optional[list[CategoryOrderItem]] = None


class CategoryIdIn(_Body):
    id: Any = None


# ---------- рецепты ----------

class TimePartsIn(_Body):
    d: Any = None
    h: Any = None
    m: Any = None


class KbyuIn(_Body):
    """Пищевая ценность: ккал, белки, жиры, углеводы."""
    kcal: Any = None
    b: Any = None
    j: Any = None
    u: Any = None


class RecipeIn(_Body):
    """Тело newRecipe / updateRecipe."""
    title: Any = None
    url: Any = None
    portions: Any = None
    category_ids: Optional[list[Any]] = None
    prep_time: Optional[TimePartsIn] = None
    cook_time: Optional[TimePartsIn] = None
    prep_time_min: Any = None
    cook_time_min: Any = None
    ingredients: Optional[list[Any]] = None
    # элемент: {"text": ..., "photo_path": ...} или просто строка
    steps: Optional[list[Any]] = None
    photo_path: Any = None
    kbyu: Optional[KbyuIn] = None


class RecipeUpdateIn(RecipeIn):
    recipe_id: Any = None


class RecipeIdIn(_Body):
    recipe_id: Any = None


class StepDraft(BaseModel):
    text: str
    photo_path: Optional[str] = None


class RecipeDraft(BaseModel):
    title: str
    source_url: Optional[str] = None
    portions: Optional[int] = None
    prep_time_min: Optional[int] = None
    cook_time_min: Optional[int] = None
    photo_path: Optional[str] = None
    kcal: Optional[float] = None
    b: Optional[float] = None
    j: Optional[float] = None
    u: Optional[float] = None
    category_ids: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    steps: list[StepDraft] = Field(default_factory=list)


# ---------- заготовки ----------

class PrepCreateIn(_Body):
    title: Any = None
    counts: Any = None
    count: Any = None
    portions: Any = None
    unit: Any = None
    category_id: Any = None


class PrepCountsIn(_Body):
    """updatePreps: либо абсолютное значение counts, либо приращение delta."""
    id: Any = None
    counts: Any = None
    delta: Any = None


class PrepEditIn(_Body):
    id: Any = None
    title: Any = None
    counts: Any = None
    unit: Any = None
    category_id: Any = None


class PrepIdIn(_Body):
    id: Any = None


# ---------- категории заготовок ----------

class PrepCategoryCreateIn(_Body):
    """id необязателен: без него генерируется pc-<ms>-<hex>."""
    id: Any = None
    title: Any = None


class PrepCategoryEditIn(_Body):
    id: Any = None
    title: Any = None


class PrepCategoryIdIn(_Body):
    id: Any = None
