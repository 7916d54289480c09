# app/services/stores.py
"""
StreakFit API - Store Interfaces.

The session core reads the catalog and owns sessions and stats through
these interfaces. `app.services.mongo_stores` implements them on Beanie.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from app.schemas.catalog import Exercise, Workout
from app.schemas.session import ExerciseResult, UserStats, WorkoutSession


class CatalogStore(ABC):
    """Read-only access to exercises and workouts."""

    @abstractmethod
    async def get_workout(self, workout_id: UUID) -> Optional[Workout]:
        """Workout with its ordered exercise references, or None."""
        pass

    @abstractmethod
    async def get_exercise(self, exercise_id: UUID) -> Optional[Exercise]:
        """Exercise by id, or None."""
        pass


class SessionStore(ABC):
    """Persistence for workout sessions."""

    @abstractmethod
    async def insert_session(self, session: WorkoutSession) -> WorkoutSession:
        pass

    @abstractmethod
    async def get_session(self, session_id: UUID) -> Optional[WorkoutSession]:
        pass

    @abstractmethod
    async def find_open_session(
        self,
        user_id: str,
        workout_id: UUID,
        started_after: datetime
    ) -> Optional[WorkoutSession]:
        """Most recent open session for (user, workout) started after the given time."""
        pass

    @abstractmethod
    async def close_session(
        self,
        session_id: UUID,
        end_time: datetime,
        results: List[ExerciseResult]
    ) -> Optional[WorkoutSession]:
        """
        Close an open session.

        Must be a single conditional write on `completed == False`.

        Returns:
            The closed session, or None if it was not open.
        """
        pass

    @abstractmethod
    async def mark_stats_applied(self, session_id: UUID) -> None:
        pass

    @abstractmethod
    async def list_user_sessions(self, user_id: str, limit: int) -> List[WorkoutSession]:
        """Sessions for a user, newest start first."""
        pass

    @abstractmethod
    async def list_open_sessions(
        self,
        user_id: str,
        started_before: datetime
    ) -> List[WorkoutSession]:
        """Open sessions for a user started before the given time, oldest first."""
        pass

    @abstractmethod
    async def list_unapplied_sessions(self, user_id: str) -> List[WorkoutSession]:
        """Closed sessions whose stats were never applied, oldest end first."""
        pass


class StatsStore(ABC):
    """Persistence for per-user stats, with compare-and-swap writes."""

    @abstractmethod
    async def get_stats(self, user_id: str) -> Optional[UserStats]:
        pass

    @abstractmethod
    async def save_stats(
        self,
        stats: UserStats,
        expected_version: Optional[int]
    ) -> Optional[UserStats]:
        """
        Write stats if nobody else wrote them first.

        Args:
            stats: New stats.
            expected_version: Version read before computing `stats`, or None
                when no stats existed.

        Returns:
            The stored stats with the bumped version, or None on conflict.
        """
        pass
