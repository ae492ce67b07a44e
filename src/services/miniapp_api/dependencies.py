# src/services/miniapp_api/dependencies.py
"""
Dependency Injection для Mini App API.

Конфигурация, кодек токенов и пул БД создаются один раз в lifespan
и передаются сюда через init_dependencies().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Request

from src.common.errors import Unauthenticated
from src.core.auth import SessionResolver, TokenCodec
from src.core.recipes import (
    CategoryRepository,
    PrepCategoryRepository,
    PrepRepository,
    RecipeRepository,
    RecipeService,
)
from src.core.sport import (
    ExerciseRepository,
    ProfileRepository,
    SportService,
    SportStatsService,
    WorkoutRepository,
)
from src.core.tasks import ProjectRepository, TaskRepository, TaskService
from src.core.users import RevisionTracker, UserRepository

if TYPE_CHECKING:
    from src.config.loader import Settings
    from src.infra.database import DatabaseManager


# Синглтоны
_settings: "Settings | None" = None
_db: "DatabaseManager | None" = None
_codec: TokenCodec | None = None
_resolver: SessionResolver | None = None


async def init_dependencies(
    settings: "Settings",
    db: "DatabaseManager",
    codec: TokenCodec,
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _settings, _db, _codec, _resolver
    _settings = settings
    _db = db
    _codec = codec
    _resolver = SessionResolver(codec, cookie_name=settings.auth.SESSION_COOKIE_NAME)


async def cleanup_dependencies() -> None:
    """Очистить ссылки при остановке приложения."""
    global _settings, _db, _codec, _resolver
    _settings = None
    _db = None
    _codec = None
    _resolver = None


def get_app_settings() -> "Settings":
    """Получить настройки приложения."""
    if _settings is None:
        raise RuntimeError("Настройки не инициализированы. Вызовите init_dependencies()")
    return _settings


def get_db() -> "DatabaseManager":
    """Получить менеджер БД."""
    if _db is None:
        raise RuntimeError("БД не инициализирована. Вызовите init_dependencies()")
    return _db


def get_token_codec() -> TokenCodec:
    """Получить кодек сессионных токенов."""
    if _codec is None:
        raise RuntimeError("TokenCodec не инициализирован. Вызовите init_dependencies()")
    return _codec


def get_session_resolver() -> SessionResolver:
    if _resolver is None:
        raise RuntimeError("SessionResolver не инициализирован. Вызовите init_dependencies()")
    return _resolver


async def require_user_id(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> int:
    """
    id пользователя из cookie сессии.
    Без валидной сессии запрос завершается 401 NO_SESSION до обращения к БД.
    """
    user_id = await resolver.resolve(request.cookies)
    if user_id is None:
        raise Unauthenticated()
    return user_id


# === REPOSITORIES / SERVICES ===

def get_user_repository(db: "DatabaseManager" = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_revision_tracker(db: "DatabaseManager" = Depends(get_db)) -> RevisionTracker:
    return RevisionTracker(db)


def get_sport_service(db: "DatabaseManager" = Depends(get_db)) -> SportService:
    return SportService(
        workouts=WorkoutRepository(db),
        exercises=ExerciseRepository(db),
        revisions=RevisionTracker(db),
    )


def get_sport_stats_service(
    db: "DatabaseManager" = Depends(get_db),
    settings: "Settings" = Depends(get_app_settings),
) -> SportStatsService:
    return SportStatsService(
        workouts=WorkoutRepository(db),
        profile=ProfileRepository(db),
        users=UserRepository(db),
        timezone=settings.system.TIMEZONE,
    )


def get_recipe_service(
    db: "DatabaseManager" = Depends(get_db),
    settings: "Settings" = Depends(get_app_settings),
) -> RecipeService:
    return RecipeService(
        categories=CategoryRepository(db),
        recipes=RecipeRepository(db),
        preps=PrepRepository(db),
        prep_categories=PrepCategoryRepository(db),
        storage_url=settings.storage.PUBLIC_STORAGE_URL,
        bucket=settings.storage.STORAGE_BUCKET,
    )


def get_task_service(db: "DatabaseManager" = Depends(get_db)) -> TaskService:
    return TaskService(tasks=TaskRepository(db), projects=ProjectRepository(db))
