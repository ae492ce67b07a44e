# src/services/miniapp_api/routes/recipes.py
"""
Раздел "Рецепты": каталог и категории, рецепты, заготовки и их категории.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from src.core.recipes import RecipeService
from src.core.recipes.models import (
    CategoryCreateIn,
    CategoryIdIn,
    CategoryRenameIn,
    CategoryReorderIn,
    PrepCategoryCreateIn,
    PrepCategoryEditIn,
    PrepCategoryIdIn,
    PrepCountsIn,
    PrepCreateIn,
    PrepEditIn,
    PrepIdIn,
    RecipeIdIn,
    RecipeIn,
    RecipeUpdateIn,
)
from src.services.miniapp_api.dependencies import get_recipe_service, require_user_id

router = APIRouter(prefix="/api/recipes", tags=["Recipes"])


# === КАТЕГОРИИ ===

@router.get("/categories/catalog")
async def get_category_catalog(
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    """Общий каталог категорий, доступен без сессии."""
    return {"ok": True, "categories": await service.catalog()}


@router.get("/categories")
async def get_categories(
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "categories": await service.list_categories(user_id)}


@router.post("/categories/create")
async def create_category(
    payload: CategoryCreateIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "category": await service.create_category(user_id, payload)}


@router.post("/categories/rename")
async def rename_category(
    payload: CategoryRenameIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "category": await service.rename_category(user_id, payload)}


@router.post("/categories/reorder")
async def reorder_categories(
    payload: CategoryReorderIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "order": await service.reorder_categories(user_id, payload)}


@router.post("/categories/delete")
async def delete_category(
    payload: CategoryIdIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    await service.delete_category(user_id, payload.id)
    return {"ok": True}


@router.get("/categories/stats")
async def get_category_stats(
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    """Категории, число рецептов в каждой и число рецептов без категории."""
    return {"ok": True, **await service.category_stats(user_id)}


@router.get("/listPrepCategories")
async def list_prep_categories(
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "categories": await service.prep_categories(user_id)}


# === РЕЦЕПТЫ ===

@router.get("/list")
async def list_recipes(
    view: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "recipes": await service.list_recipes(user_id, view)}


@router.get("/curRecipe")
async def get_recipe(
    recipe_id: Optional[str] = Query(default=None),
    id: Optional[str] = Query(default=None),
    recipeId: Optional[str] = Query(default=None),
    view: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    """view: full | meta | photo. Идентификатор: recipe_id, id или recipeId."""
    raw_id = next((v for v in (recipe_id, id, recipeId) if v is not None), None)
    return {"ok": True, **await service.get_recipe(user_id, raw_id, view)}


@router.post("/newRecipe")
async def create_recipe(
    payload: RecipeIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, **await service.create_recipe(user_id, payload)}


@router.post("/updateRecipe")
async def update_recipe(
    payload: RecipeUpdateIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, **await service.update_recipe(user_id, payload.recipe_id, payload)}


@router.post("/deleteRecipe")
async def delete_recipe(
    payload: RecipeIdIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    recipe_id = await service.delete_recipe(user_id, payload.recipe_id)
    return {"ok": True, "recipe_id": recipe_id}


# === ЗАГОТОВКИ ===

@router.get("/listPreps")
async def list_preps(
    view: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    """view: full | stock | out; limit 1..2000 (по умолчанию 500)."""
    return {"ok": True, "preps": await service.list_preps(user_id, view, limit)}


@router.post("/newPreps")
async def create_prep(
    payload: PrepCreateIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "prep": await service.create_prep(user_id, payload)}


@router.post("/updatePreps")
async def update_prep_counts(
    payload: PrepCountsIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "prep": await service.update_prep_counts(user_id, payload)}


@router.post("/editPreps")
async def edit_prep(
    payload: PrepEditIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "prep": await service.edit_prep(user_id, payload)}


@router.post("/deletePreps")
async def delete_prep(
    payload: PrepIdIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    await service.delete_prep(user_id, payload.id)
    return {"ok": True}


# === КАТЕГОРИИ ЗАГОТОВОК ===

@router.get("/prepCategories/listPrepCategories")
async def list_prep_category_items(
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "categories": await service.list_prep_category_items(user_id)}


@router.post("/prepCategories/addPrepCategories")
async def add_prep_category(
    payload: PrepCategoryCreateIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    """Дубль названия (без учёта регистра) -> 409 TITLE_EXISTS."""
    return {"ok": True, "category": await service.create_prep_category(user_id, payload)}


@router.post("/prepCategories/editPrepCategories")
async def edit_prep_category(
    payload: PrepCategoryEditIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "category": await service.edit_prep_category(user_id, payload)}


@router.post("/prepCategories/delPrepCategories")
async def delete_prep_category(
    payload: PrepCategoryIdIn,
    user_id: int = Depends(require_user_id),
    service: RecipeService = Depends(get_recipe_service),
) -> dict[str, Any]:
    return {"ok": True, "id": await service.delete_prep_category(user_id, payload.id)}
