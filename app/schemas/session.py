"""
StreakFit API - Session & Stats Schemas.

Workout sessions, per-exercise results and the per-user stats aggregate,
plus the request/response bodies of the session routes.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.catalog import Workout


class ExerciseResult(BaseModel):
    """
    Outcome of one attempted exercise.

    Only the fields whose target existed on the workout entry are set.
    """

    model_config = ConfigDict(frozen=True)

    exercise_id: UUID
    reps_completed: Optional[int] = Field(None, ge=0)
    duration_completed: Optional[int] = Field(None, ge=0, description="Seconds")
    sets_completed: Optional[int] = Field(None, ge=0)


class WorkoutSession(BaseModel):
    """
    One user's attempt at a workout.

    Attributes:
        id: Session identity.
        user_id: Owning user.
        workout_id: Referenced workout.
        start_time: When the session was opened.
        end_time: Set together with `completed` when the session closes.
        completed: False while open.
        exercise_results: Results in attempt order; frozen once closed.
        stats_applied: True once the stats aggregate includes this session.
    """

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    workout_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    completed: bool = False
    exercise_results: List[ExerciseResult] = Field(default_factory=list)
    stats_applied: bool = False


class UserStats(BaseModel):
    """
    Cumulative per-user statistics.

    Attributes:
        user_id: Owning user.
        total_workouts: Completed sessions.
        total_minutes: Sum of completed session durations.
        current_streak: Consecutive calendar days with a completion.
        longest_streak: Highest current_streak ever observed.
        last_workout_date: Timestamp of the latest completion.
        favorite_category: Most completed workout category.
        category_counts: Completions per workout category.
        applied_session_ids: Most recent sessions folded in, written with the
            stats so a retry can tell an already-counted session.
        version: Optimistic-concurrency token, bumped by the store on write.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "user-123",
                "total_workouts": 2,
                "total_minutes": 35,
                "current_streak": 2,
                "longest_streak": 2,
                "last_workout_date": "2024-01-16T07:30:00Z",
                "favorite_category": "hiit"
            }
        }
    )

    user_id: str
    total_workouts: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_workout_date: Optional[datetime] = None
    favorite_category: Optional[str] = None
    category_counts: Dict[str, int] = Field(default_factory=dict)
    applied_session_ids: List[UUID] = Field(default_factory=list)
    version: int = 0


class StartSessionRequest(BaseModel):
    """Body of POST /sessions."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"workout_id": "550e8400-e29b-41d4-a716-446655440000"}
        }
    )

    workout_id: UUID = Field(..., description="Workout to start")


class StartSessionResponse(BaseModel):
    session_id: UUID


class CompleteSessionRequest(BaseModel):
    """Body of POST /sessions/{session_id}/complete."""

    exercise_results: List[ExerciseResult] = Field(
        default_factory=list,
        description="Full, final result set for the session"
    )


class CompletionOutcome(BaseModel):
    """
    Result of closing a session.

    `stats_updated` is False when the session was saved but the stats
    write failed; the stats can be re-applied later.
    """

    success: bool = True
    session_id: UUID
    duration_minutes: int
    stats_updated: bool
    stats: Optional[UserStats] = None


class SessionWithWorkout(BaseModel):
    """A session joined with the workout it references."""

    session: WorkoutSession
    workout: Workout


class PendingStatsResponse(BaseModel):
    applied: int
