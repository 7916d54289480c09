"""
StreakFit API - MongoDB Models Package.

Export all Beanie ODM models for MongoDB operations.
"""

from app.models.mongodb import (
    ExerciseDocument,
    WorkoutDocument,
    WorkoutSessionDocument,
    UserStatsDocument,
)

__all__ = [
    "ExerciseDocument",
    "WorkoutDocument",
    "WorkoutSessionDocument",
    "UserStatsDocument",
]
