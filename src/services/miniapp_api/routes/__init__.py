# src/services/miniapp_api/routes/__init__.py
"""Роутеры Mini App API."""

from src.services.miniapp_api.routes import auth, exercises, recipes, revision, sport, tasks

ROUTERS = [
    auth.router,
    revision.router,
    sport.router,
    exercises.router,
    recipes.router,
    tasks.router,
]

__all__ = ["ROUTERS"]
