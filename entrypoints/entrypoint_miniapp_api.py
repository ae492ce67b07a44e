#!/usr/bin/env python3
"""
Entrypoint для Mini App API.

Запуск:
    python entrypoints/entrypoint_miniapp_api.py

Хост и порт берутся из API_HOST / API_PORT.
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from src.config import settings


def main() -> None:
    """Запустить Mini App API."""
    uvicorn.run(
        "src.services.miniapp_api.app:app",
        host=settings.deployment.API_HOST,
        port=settings.deployment.API_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
