# src/infra/__init__.py
"""
Инфраструктурный слой.
Пул соединений PostgreSQL, транзакции, применение схемы.
"""

from src.infra.database import DatabaseManager, apply_schema, init_db

__all__ = [
    "DatabaseManager",
    "apply_schema",
    "init_db",
]
