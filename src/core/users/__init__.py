# src/core/users/__init__.py
"""
Домен пользователей.
Учётная запись Mini App и счётчик ревизий пользователя.
"""

from src.core.users.models import Revision, User
from src.core.users.repository import UserRepository
from src.core.users.revision import RevisionTracker, bump_revision

__all__ = [
    "Revision",
    "User",
    "UserRepository",
    "RevisionTracker",
    "bump_revision",
]
