# src/services/miniapp_api/cookies.py
"""
Cookie сессии: HttpOnly, SameSite=Lax, Path=/, Max-Age 7 дней.
Secure только в production.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Response

if TYPE_CHECKING:
    from src.config.loader import Settings


def set_session_cookie(response: Response, token: str, settings: "Settings") -> None:
    response.set_cookie(
        key=settings.auth.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.auth.SESSION_TTL_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.system.is_production,
    )


def clear_session_cookie(response: Response, settings: "Settings") -> None:
    response.delete_cookie(
        key=settings.auth.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.system.is_production,
    )
