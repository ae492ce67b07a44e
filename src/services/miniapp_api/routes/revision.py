# src/services/miniapp_api/routes/revision.py
"""
Ревизия данных пользователя (общая для всех разделов).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.core.users import RevisionTracker
from src.services.miniapp_api.dependencies import get_revision_tracker, require_user_id

router = APIRouter(prefix="/api", tags=["Revision"])


@router.get("/rev")
async def get_revision(
    user_id: int = Depends(require_user_id),
    tracker: RevisionTracker = Depends(get_revision_tracker),
) -> dict[str, Any]:
    """Клиент сравнивает rev с кэшем и перезагружает данные при расхождении."""
    current = await tracker.current(user_id)
    return {"ok": True, "rev": current.rev, "updated_at": current.updated_at}
