# src/services/miniapp_api/app.py
"""
FastAPI приложение Mini App API.

Backend для Telegram Mini App: вход по initData, cookie-сессия (JWT)
и данные пользователя в PostgreSQL.

Endpoints:
- POST /api/auth, /api/auth/logout, /api/dev-auth - сессия
- GET /api/rev - ревизия данных пользователя
- /api/sport/* и /api/exercises - тренировки и упражнения
- /api/recipes/* - категории, рецепты, заготовки
- /api/tasks, /api/projects - задачи и проекты
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import Depends, FastAPI, Request
from fastapi.dependencies.models import Dependant
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from src.common.constants import Reason, TypeMsg
from src.common.errors import ApiError, ConfigurationError, Unauthenticated
from src.common.logger import log_error, log_info, register_secrets, setup_logging
from src.core.auth import TokenCodec
from src.infra.database import DatabaseManager, init_db
from src.services.miniapp_api.dependencies import (
    cleanup_dependencies,
    get_db,
    get_session_resolver,
    init_dependencies,
    require_user_id,
)
from src.services.miniapp_api.routes import ROUTERS
from src.services.miniapp_api.schemas import HealthStatus

SERVICE_NAME = "miniapp_api"
SERVICE_VERSION = "1.0.0"


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    from src.config import settings

    setup_logging()

    secret = settings.auth.APP_JWT_SECRET
    if not secret:
        raise ConfigurationError(Reason.NO_JWT_SECRET, "APP_JWT_SECRET не задан")

    register_secrets(
        [
            secret,
            settings.telegram.TELEGRAM_BOT_TOKEN_A,
            settings.telegram.TELEGRAM_BOT_TOKEN_B,
            settings.database.DB_PASSWORD,
        ]
    )

    codec = TokenCodec(
        secret,
        ttl=timedelta(days=settings.auth.SESSION_TTL_DAYS),
        algorithm=settings.auth.JWT_ALGORITHM,
    )

    db = DatabaseManager()
    await init_db(db)
    await init_dependencies(settings=settings, db=db, codec=codec)
    await log_info(f"{SERVICE_NAME} запущен ({settings.system.ENVIRONMENT})", type_msg=TypeMsg.INFO)

    yield

    await cleanup_dependencies()
    await db.disconnect()
    await log_info(f"{SERVICE_NAME} остановлен", type_msg=TypeMsg.INFO)


# === APP ===

app = FastAPI(
    title="Mini App API",
    description="Backend для Telegram Mini App: спорт, рецепты, задачи.",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Telegram Mini App загружается с разных доменов
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === ERROR HANDLERS ===

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.reason} {exc.message or ''}".rstrip())
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def _requires_session(dependant: Dependant) -> bool:
    """Есть ли среди зависимостей маршрута (на любой глубине) проверка сессии."""
    return any(
        sub.call is require_user_id or _requires_session(sub)
        for sub in dependant.dependencies
    )


async def _has_session(request: Request) -> bool:
    provider = request.app.dependency_overrides.get(get_session_resolver, get_session_resolver)
    return await provider().resolve(request.cookies) is not None


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Тело запроса не разбирается в ожидаемую модель.

    Тело валидируется раньше зависимостей, поэтому для маршрутов с сессией
    проверка cookie повторяется здесь: без сессии ответ 401, а не 400.
    """
    route = request.scope.get("route")
    if isinstance(route, APIRoute) and _requires_session(route.dependant):
        if not await _has_session(request):
            return JSONResponse(status_code=401, content=Unauthenticated().to_body())
    return JSONResponse(
        status_code=400,
        content={"ok": False, "reason": Reason.BAD_INPUT.value, "error": "invalid request body"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"Необработанная ошибка {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "reason": Reason.SERVER_ERROR.value, "error": str(exc)},
    )


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check(db: DatabaseManager = Depends(get_db)) -> HealthStatus:
    """Проверка здоровья сервиса и подключения к PostgreSQL."""
    db_ok = await db.health_check()
    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if db_ok else "degraded",
        version=SERVICE_VERSION,
        dependencies={"postgres": "ok" if db_ok else "unavailable"},
    )


for router in ROUTERS:
    app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    from src.config import settings

    uvicorn.run(app, host=settings.deployment.API_HOST, port=settings.deployment.API_PORT)
