"""
StreakFit API - Catalog Schemas.

Read-only views of the exercise and workout catalog.
"""

from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Equipment(str, Enum):
    NONE = "none"
    PULLUP_BAR = "pullup_bar"
    MAT = "mat"


class WorkoutCategory(str, Enum):
    STRENGTH = "strength"
    CARDIO = "cardio"
    HIIT = "hiit"
    FLEXIBILITY = "flexibility"


class Exercise(BaseModel):
    """
    A single bodyweight exercise.

    Attributes:
        id: Exercise identity.
        name: Display name.
        description: Short description.
        instructions: Ordered instruction steps.
        muscle_groups: Muscle-group tags.
        difficulty: Difficulty level.
        equipment: Equipment required.
        image_url: Optional illustration.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    description: str = ""
    instructions: List[str] = Field(default_factory=list)
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty: Difficulty = Difficulty.BEGINNER
    equipment: Equipment = Equipment.NONE
    image_url: Optional[str] = None


class WorkoutExercise(BaseModel):
    """Reference to an exercise inside a workout, with its targets."""

    model_config = ConfigDict(frozen=True)

    exercise_id: UUID
    reps: Optional[int] = Field(None, ge=0, description="Target reps")
    duration: Optional[int] = Field(None, ge=0, description="Target duration in seconds")
    sets: Optional[int] = Field(None, ge=0, description="Target sets")


class Workout(BaseModel):
    """A workout definition with its ordered exercise list."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    description: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_duration: int = Field(0, ge=0, description="Estimated minutes")
    category: WorkoutCategory = WorkoutCategory.STRENGTH
    exercises: List[WorkoutExercise] = Field(default_factory=list)


class WorkoutStep(BaseModel):
    """An exercise joined with the targets a workout sets for it."""

    model_config = ConfigDict(frozen=True)

    exercise: Exercise
    reps: Optional[int] = None
    duration: Optional[int] = None
    sets: Optional[int] = None


class WorkoutDetail(BaseModel):
    """
    Workout with its exercises resolved, in workout order.

    Exercises missing from the catalog are left out of `steps`.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "workout": {
                    "id": "550e8400-e29b-41d4-a716-446655440000",
                    "name": "Morning Burner",
                    "difficulty": "beginner",
                    "estimated_duration": 15,
                    "category": "hiit",
                    "exercises": []
                },
                "steps": []
            }
        }
    )

    workout: Workout
    steps: List[WorkoutStep] = Field(default_factory=list)
