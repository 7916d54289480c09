# app/routes/stats.py
"""StreakFit API - User Stats Routes."""

from typing import Optional

from fastapi import APIRouter, Depends

from app.dependencies import get_caller_id, get_session_manager
from app.schemas.session import UserStats
from app.services.session_lifecycle import SessionLifecycleManager

router = APIRouter()


@router.get("", response_model=Optional[UserStats])
async def get_user_stats(
    user_id: Optional[str] = Depends(get_caller_id),
    manager: SessionLifecycleManager = Depends(get_session_manager)
):
    """Caller's stats; null when anonymous or before the first completed session."""
    return await manager.get_user_stats(user_id)
