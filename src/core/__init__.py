# src/core/__init__.py
"""
Доменный слой (Core Domain).
Сессии, пользователи и разделы Mini App: спорт, рецепты, задачи.
"""
