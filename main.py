#!/usr/bin/env python3
# main.py
"""
Главная точка входа Mini App API.

Режимы:
    api       - HTTP API (uvicorn)
    migrate   - применить migrations/init.sql
    dev_user  - создать/обновить dev-пользователя (только development)
"""

from __future__ import annotations

import asyncio
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg
from src.infra.database import DatabaseManager, apply_schema, init_db

MODES = ("api", "migrate", "dev_user")


async def run_api() -> None:
    """Запускает HTTP API."""
    import uvicorn

    await log_info(
        f"Запуск Mini App API на {settings.deployment.API_HOST}:{settings.deployment.API_PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.miniapp_api.app:app",
        host=settings.deployment.API_HOST,
        port=settings.deployment.API_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Mini App API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_migrate() -> None:
    """Применяет схему БД."""
    db = DatabaseManager()
    await init_db(db)
    try:
        await apply_schema(db)
    finally:
        await db.disconnect()


async def run_dev_user() -> None:
    """Создаёт dev-пользователя из DEV_TG_* переменных."""
    from src.core.users import UserRepository

    if not settings.dev_auth_enabled:
        await log_error("dev_user доступен только при ENVIRONMENT=development и DEV_AUTH=true")
        sys.exit(1)

    db = DatabaseManager()
    await init_db(db)
    try:
        user = await UserRepository(db).upsert_telegram_user(
            tg_id=settings.dev.DEV_TG_ID,
            username=settings.dev.DEV_TG_USERNAME,
            first_name=settings.dev.DEV_TG_NAME,
        )
        await log_info(f"Dev-пользователь id={user.id} tg_id={user.tg_id}", type_msg=TypeMsg.INFO)
    finally:
        await db.disconnect()


async def main(mode: str) -> None:
    setup_logging()
    await log_info(
        f"{settings.system.PROJECT_NAME} v{settings.system.VERSION}: запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    if mode == "api":
        await run_api()
    elif mode == "migrate":
        await run_migrate()
    elif mode == "dev_user":
        await run_dev_user()


def print_usage() -> None:
    print(__doc__)
    print("Примеры:")
    print("    python main.py            # api")
    print("    python main.py migrate")


if __name__ == "__main__":
    mode = "api"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in MODES:
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode))
    except KeyboardInterrupt:
        pass
