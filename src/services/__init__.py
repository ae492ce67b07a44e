# src/services/__init__.py
"""
HTTP сервисы приложения.

Сервисы:
- miniapp_api: backend для Telegram Mini App
"""

__all__: list[str] = []
