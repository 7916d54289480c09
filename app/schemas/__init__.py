"""StreakFit API - Pydantic Schemas Package."""

from app.schemas.catalog import (
    Difficulty,
    Equipment,
    WorkoutCategory,
    Exercise,
    WorkoutExercise,
    Workout,
    WorkoutStep,
    WorkoutDetail,
)
from app.schemas.session import (
    ExerciseResult,
    WorkoutSession,
    UserStats,
    StartSessionRequest,
    StartSessionResponse,
    CompleteSessionRequest,
    CompletionOutcome,
    SessionWithWorkout,
    PendingStatsResponse,
)

__all__ = [
    # Catalog
    "Difficulty",
    "Equipment",
    "WorkoutCategory",
    "Exercise",
    "WorkoutExercise",
    "Workout",
    "WorkoutStep",
    "WorkoutDetail",
    # Sessions
    "ExerciseResult",
    "WorkoutSession",
    "UserStats",
    "StartSessionRequest",
    "StartSessionResponse",
    "CompleteSessionRequest",
    "CompletionOutcome",
    "SessionWithWorkout",
    "PendingStatsResponse",
]
