# app/routes/catalog.py
"""StreakFit API - Catalog Read Routes."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.dependencies import get_catalog_store
from app.schemas.catalog import Exercise, WorkoutDetail
from app.services.catalog import get_workout_detail
from app.services.stores import CatalogStore
from app.utils.errors import NotFoundError

router = APIRouter()


@router.get("/workouts/{workout_id}", response_model=WorkoutDetail)
async def get_workout(
    workout_id: UUID,
    catalog: CatalogStore = Depends(get_catalog_store)
):
    """Workout with its exercises resolved in workout order."""
    detail = await get_workout_detail(catalog, workout_id)
    if not detail:
        raise NotFoundError("Workout not found")
    return detail


@router.get("/exercises/{exercise_id}", response_model=Exercise)
async def get_exercise(
    exercise_id: UUID,
    catalog: CatalogStore = Depends(get_catalog_store)
):
    """Exercise by id."""
    exercise = await catalog.get_exercise(exercise_id)
    if not exercise:
        raise NotFoundError("Exercise not found")
    return exercise
