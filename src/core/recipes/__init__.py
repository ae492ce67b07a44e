# src/core/recipes/__init__.py
"""
Домен "Рецепты": категории, рецепты, заготовки.
"""

from src.core.recipes.repository import (
    CategoryRepository,
    PrepCategoryRepository,
    PrepRepository,
    RecipeRepository,
)
from src.core.recipes.service import RecipeService, public_url_for_path

__all__ = [
    "CategoryRepository",
    "PrepCategoryRepository",
    "PrepRepository",
    "RecipeRepository",
    "RecipeService",
    "public_url_for_path",
]
