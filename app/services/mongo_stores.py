# app/services/mongo_stores.py
"""
StreakFit API - MongoDB Stores.

Beanie-backed implementations of the catalog, session and stats stores.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from beanie import UpdateResponse
from beanie.odm.operators.update.general import Set
from pymongo.errors import DuplicateKeyError

from app.models.mongodb import (
    ExerciseDocument,
    WorkoutDocument,
    WorkoutSessionDocument,
    UserStatsDocument,
)
from app.schemas.catalog import Exercise, Workout
from app.schemas.session import ExerciseResult, UserStats, WorkoutSession
from app.services.stores import CatalogStore, SessionStore, StatsStore

logger = logging.getLogger(__name__)

_SESSION_FIELDS = {
    "user_id",
    "workout_id",
    "start_time",
    "end_time",
    "completed",
    "exercise_results",
    "stats_applied",
}
_STATS_FIELDS = {
    "user_id",
    "total_workouts",
    "total_minutes",
    "current_streak",
    "longest_streak",
    "last_workout_date",
    "favorite_category",
    "category_counts",
    "applied_session_ids",
    "version",
}


def _to_session(doc: WorkoutSessionDocument) -> WorkoutSession:
    return WorkoutSession(id=doc.uid, **doc.model_dump(include=_SESSION_FIELDS))


def _to_stats(doc: UserStatsDocument) -> UserStats:
    return UserStats(**doc.model_dump(include=_STATS_FIELDS))


class MongoCatalogStore(CatalogStore):
    """Catalog reads from the `exercises` and `workouts` collections."""

    async def get_workout(self, workout_id: UUID) -> Optional[Workout]:
        doc = await WorkoutDocument.find_one(WorkoutDocument.uid == workout_id)
        if not doc:
            return None
        return Workout(
            id=doc.uid,
            **doc.model_dump(include={
                "name", "description", "difficulty",
                "estimated_duration", "category", "exercises"
            })
        )

    async def get_exercise(self, exercise_id: UUID) -> Optional[Exercise]:
        doc = await ExerciseDocument.find_one(ExerciseDocument.uid == exercise_id)
        if not doc:
            return None
        return Exercise(
            id=doc.uid,
            **doc.model_dump(include={
                "name", "description", "instructions", "muscle_groups",
                "difficulty", "equipment", "image_url"
            })
        )


class MongoSessionStore(SessionStore):
    """Sessions in the `workout_sessions` collection."""

    async def insert_session(self, session: WorkoutSession) -> WorkoutSession:
        doc = WorkoutSessionDocument(
            uid=session.id,
            **session.model_dump(include=_SESSION_FIELDS)
        )
        await doc.insert()
        return _to_session(doc)

    async def get_session(self, session_id: UUID) -> Optional[WorkoutSession]:
        doc = await WorkoutSessionDocument.find_one(WorkoutSessionDocument.uid == session_id)
        return _to_session(doc) if doc else None

    async def find_open_session(
        self,
        user_id: str,
        workout_id: UUID,
        started_after: datetime
    ) -> Optional[WorkoutSession]:
        docs = await WorkoutSessionDocument.find(
            WorkoutSessionDocument.user_id == user_id,
            WorkoutSessionDocument.workout_id == workout_id,
            WorkoutSessionDocument.completed == False,  # noqa: E712
            WorkoutSessionDocument.start_time > started_after
        ).sort(-WorkoutSessionDocument.start_time).limit(1).to_list()
        return _to_session(docs[0]) if docs else None

    async def close_session(
        self,
        session_id: UUID,
        end_time: datetime,
        results: List[ExerciseResult]
    ) -> Optional[WorkoutSession]:
        doc = await WorkoutSessionDocument.find_one(
            WorkoutSessionDocument.uid == session_id,
            WorkoutSessionDocument.completed == False  # noqa: E712
        ).update(
            Set({
                WorkoutSessionDocument.end_time: end_time,
                WorkoutSessionDocument.completed: True,
                WorkoutSessionDocument.exercise_results: results,
            }),
            response_type=UpdateResponse.NEW_DOCUMENT
        )
        return _to_session(doc) if doc else None

    async def mark_stats_applied(self, session_id: UUID) -> None:
        await WorkoutSessionDocument.find_one(
            WorkoutSessionDocument.uid == session_id
        ).update(Set({WorkoutSessionDocument.stats_applied: True}))

    async def list_user_sessions(self, user_id: str, limit: int) -> List[WorkoutSession]:
        docs = await WorkoutSessionDocument.find(
            WorkoutSessionDocument.user_id == user_id
        ).sort(-WorkoutSessionDocument.start_time).limit(limit).to_list()
        return [_to_session(doc) for doc in docs]

    async def list_open_sessions(
        self,
        user_id: str,
        started_before: datetime
    ) -> List[WorkoutSession]:
        docs = await WorkoutSessionDocument.find(
            WorkoutSessionDocument.user_id == user_id,
            WorkoutSessionDocument.completed == False,  # noqa: E712
            WorkoutSessionDocument.start_time < started_before
        ).sort(+WorkoutSessionDocument.start_time).to_list()
        return [_to_session(doc) for doc in docs]

    async def list_unapplied_sessions(self, user_id: str) -> List[WorkoutSession]:
        docs = await WorkoutSessionDocument.find(
            WorkoutSessionDocument.user_id == user_id,
            WorkoutSessionDocument.completed == True,  # noqa: E712
            WorkoutSessionDocument.stats_applied == False  # noqa: E712
        ).sort(+WorkoutSessionDocument.end_time).to_list()
        return [_to_session(doc) for doc in docs]


class MongoStatsStore(StatsStore):
    """Stats in the `user_stats` collection, versioned for compare-and-swap."""

    async def get_stats(self, user_id: str) -> Optional[UserStats]:
        doc = await UserStatsDocument.find_one(UserStatsDocument.user_id == user_id)
        return _to_stats(doc) if doc else None

    async def save_stats(
        self,
        stats: UserStats,
        expected_version: Optional[int]
    ) -> Optional[UserStats]:
        now = datetime.now(timezone.utc)

        if expected_version is None:
            doc = UserStatsDocument(
                **stats.model_dump(include=_STATS_FIELDS - {"version"}),
                version=1,
                updated_at=now
            )
            try:
                await doc.insert()
            except DuplicateKeyError:
                logger.info(f"Stats for user {stats.user_id} created concurrently")
                return None
            return _to_stats(doc)

        doc = await UserStatsDocument.find_one(
            UserStatsDocument.user_id == stats.user_id,
            UserStatsDocument.version == expected_version
        ).update(
            Set({
                UserStatsDocument.total_workouts: stats.total_workouts,
                UserStatsDocument.total_minutes: stats.total_minutes,
                UserStatsDocument.current_streak: stats.current_streak,
                UserStatsDocument.longest_streak: stats.longest_streak,
                UserStatsDocument.last_workout_date: stats.last_workout_date,
                UserStatsDocument.favorite_category: stats.favorite_category,
                UserStatsDocument.category_counts: stats.category_counts,
                UserStatsDocument.applied_session_ids: stats.applied_session_ids,
                UserStatsDocument.version: expected_version + 1,
                UserStatsDocument.updated_at: now,
            }),
            response_type=UpdateResponse.NEW_DOCUMENT
        )
        return _to_stats(doc) if doc else None
