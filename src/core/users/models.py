# src/core/users/models.py
"""
Модели данных пользователей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Пользователь Mini App."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Внутренний id (users.id)")
    tg_id: int = Field(..., description="Telegram ID")
    username: Optional[str] = Field(None, description="Username в Telegram")
    first_name: Optional[str] = Field(None, description="Имя")
    app_rev: int = Field(0, ge=0, description="Счётчик ревизий данных пользователя")
    app_updated_at: Optional[datetime] = Field(None, description="Время последнего изменения данных")
    created_at: Optional[datetime] = Field(None, description="Дата регистрации")


class Revision(BaseModel):
    """Текущая ревизия данных пользователя."""

    rev: int = Field(..., ge=0)
    updated_at: Optional[datetime] = None
