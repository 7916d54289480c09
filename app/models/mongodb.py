# app/models/mongodb.py
"""
StreakFit MongoDB Document Models.

Beanie ODM models for MongoDB.
"""

from beanie import Document, Indexed
from pydantic import Field
from datetime import datetime, timezone
from typing import Optional, List, Dict
from uuid import UUID, uuid4

import pymongo

from app.schemas.catalog import (
    Difficulty,
    Equipment,
    WorkoutCategory,
    WorkoutExercise,
)
from app.schemas.session import ExerciseResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseDocument(Document):
    """Exercise catalog entry (read-only to the session core)."""

    uid: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    instructions: List[str] = Field(default_factory=list)
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty: Difficulty = Difficulty.BEGINNER
    equipment: Equipment = Equipment.NONE
    image_url: Optional[str] = None

    class Settings:
        name = "exercises"
        indexes = [
            "uid",
        ]


class WorkoutDocument(Document):
    """Workout catalog entry with its ordered exercise references."""

    uid: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_duration: int = 0  # minutes
    category: WorkoutCategory = WorkoutCategory.STRENGTH
    exercises: List[WorkoutExercise] = Field(default_factory=list)

    class Settings:
        name = "workouts"
        indexes = [
            "uid",
            "category",
        ]


class WorkoutSessionDocument(Document):
    """One user's attempt at a workout."""

    uid: UUID = Field(default_factory=uuid4)
    user_id: str
    workout_id: UUID
    start_time: datetime = Field(default_factory=_utcnow)
    end_time: Optional[datetime] = None
    completed: bool = False
    exercise_results: List[ExerciseResult] = Field(default_factory=list)
    stats_applied: bool = False

    class Settings:
        name = "workout_sessions"
        indexes = [
            "uid",
            [("user_id", pymongo.ASCENDING), ("start_time", pymongo.DESCENDING)],
            [("user_id", pymongo.ASCENDING), ("workout_id", pymongo.ASCENDING)],
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user-123",
                "workout_id": "550e8400-e29b-41d4-a716-446655440000",
                "start_time": "2024-01-15T07:00:00Z",
                "completed": False,
                "exercise_results": []
            }
        }


class UserStatsDocument(Document):
    """Per-user stats aggregate, one document per user."""

    user_id: Indexed(str, unique=True)
    total_workouts: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_workout_date: Optional[datetime] = None
    favorite_category: Optional[str] = None
    category_counts: Dict[str, int] = Field(default_factory=dict)
    applied_session_ids: List[UUID] = Field(default_factory=list)
    version: int = 0  # compare-and-swap token
    updated_at: datetime = Field(default_factory=_utcnow)

    class Settings:
        name = "user_stats"
