# src/services/miniapp_api/__init__.py
"""
Mini App API: backend для Telegram Mini App.

- Вход по initData и cookie-сессия (JWT)
- Данные пользователя: спорт, рецепты, задачи
- Ревизия данных для кэша на клиенте
"""
