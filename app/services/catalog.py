# app/services/catalog.py
"""StreakFit API - Catalog lookups used by the workout runner."""

import logging
from typing import Optional
from uuid import UUID

from app.schemas.catalog import WorkoutDetail, WorkoutStep
from app.services.stores import CatalogStore

logger = logging.getLogger(__name__)


async def get_workout_detail(catalog: CatalogStore, workout_id: UUID) -> Optional[WorkoutDetail]:
    """
    Resolve a workout's exercise references in workout order.

    Returns None if the workout does not exist. Entries whose exercise is
    missing from the catalog are skipped.
    """
    workout = await catalog.get_workout(workout_id)
    if not workout:
        return None

    steps = []
    for entry in workout.exercises:
        exercise = await catalog.get_exercise(entry.exercise_id)
        if not exercise:
            logger.warning(f"Workout {workout_id} references missing exercise {entry.exercise_id}")
            continue
        steps.append(WorkoutStep(
            exercise=exercise,
            reps=entry.reps,
            duration=entry.duration,
            sets=entry.sets
        ))

    return WorkoutDetail(workout=workout, steps=steps)
