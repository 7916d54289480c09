# app/routes/sessions.py
"""StreakFit API - Workout Session Routes."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from app.dependencies import get_caller_id, get_session_manager
from app.schemas.session import (
    CompleteSessionRequest,
    CompletionOutcome,
    PendingStatsResponse,
    SessionWithWorkout,
    StartSessionRequest,
    StartSessionResponse,
    WorkoutSession,
)
from app.services.session_lifecycle import SessionLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=StartSessionResponse)
async def start_session(
    request: StartSessionRequest,
    user_id: Optional[str] = Depends(get_caller_id),
    manager: SessionLifecycleManager = Depends(get_session_manager)
):
    """Open a session for a workout. Repeated starts within a few seconds reuse it."""
    session_id = await manager.start_session(user_id, request.workout_id)
    return StartSessionResponse(session_id=session_id)


@router.post("/{session_id}/complete", response_model=CompletionOutcome)
async def complete_session(
    session_id: UUID,
    request: CompleteSessionRequest,
    user_id: Optional[str] = Depends(get_caller_id),
    manager: SessionLifecycleManager = Depends(get_session_manager)
):
    """
    Close a session with its final results and update stats.

    Responds 409 if the session is already closed. `stats_updated: false`
    means the workout was saved but stats are pending.
    """
    outcome = await manager.complete_session(user_id, session_id, request.exercise_results)
    if not outcome.stats_updated:
        logger.warning(f"Session {session_id} saved, stats pending")
    return outcome


@router.get("", response_model=List[SessionWithWorkout])
async def list_sessions(
    user_id: Optional[str] = Depends(get_caller_id),
    manager: SessionLifecycleManager = Depends(get_session_manager)
):
    """Caller's most recent sessions with their workouts (empty when anonymous)."""
    joined = await manager.list_user_sessions(user_id)
    return [
        SessionWithWorkout(session=session, workout=workout)
        for session, workout in joined
    ]


@router.get("/abandoned", response_model=List[WorkoutSession])
async def list_abandoned_sessions(
    user_id: Optional[str] = Depends(get_caller_id),
    manager: SessionLifecycleManager = Depends(get_session_manager)
):
    """Caller's sessions left open past the abandonment threshold."""
    return await manager.list_abandoned_sessions(user_id)


@router.post("/stats/retry", response_model=PendingStatsResponse)
async def retry_pending_stats(
    user_id: Optional[str] = Depends(get_caller_id),
    manager: SessionLifecycleManager = Depends(get_session_manager)
):
    """Re-apply stats for completed sessions whose stats write failed."""
    applied = await manager.retry_pending_stats(user_id)
    return PendingStatsResponse(applied=applied)
