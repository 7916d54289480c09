"""In-memory stores and a controllable clock for tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID

from app.schemas.catalog import Exercise, Workout
from app.schemas.session import ExerciseResult, UserStats, WorkoutSession
from app.services.stores import CatalogStore, SessionStore, StatsStore


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, moment: datetime) -> datetime:
        self.now = moment
        return self.now


class InMemoryCatalogStore(CatalogStore):
    def __init__(self):
        self.workouts: Dict[UUID, Workout] = {}
        self.exercises: Dict[UUID, Exercise] = {}

    def add_exercise(self, exercise: Exercise) -> Exercise:
        self.exercises[exercise.id] = exercise
        return exercise

    def add_workout(self, workout: Workout) -> Workout:
        self.workouts[workout.id] = workout
        return workout

    async def get_workout(self, workout_id: UUID) -> Optional[Workout]:
        return self.workouts.get(workout_id)

    async def get_exercise(self, exercise_id: UUID) -> Optional[Exercise]:
        return self.exercises.get(exercise_id)


class InMemorySessionStore(SessionStore):
    """
    Sessions keyed by id.

    Attributes:
        fail_marks: Number of upcoming mark_stats_applied calls that raise.
    """

    def __init__(self):
        self.sessions: Dict[UUID, WorkoutSession] = {}
        self.fail_marks = 0

    async def insert_session(self, session: WorkoutSession) -> WorkoutSession:
        await asyncio.sleep(0)
        self.sessions[session.id] = session
        return session

    async def get_session(self, session_id: UUID) -> Optional[WorkoutSession]:
        return self.sessions.get(session_id)

    async def find_open_session(self, user_id, workout_id, started_after):
        await asyncio.sleep(0)
        matches = [
            s for s in self.sessions.values()
            if s.user_id == user_id and s.workout_id == workout_id
            and not s.completed and s.start_time > started_after
        ]
        return max(matches, key=lambda s: s.start_time) if matches else None

    async def close_session(self, session_id, end_time, results: List[ExerciseResult]):
        session = self.sessions.get(session_id)
        if session is None or session.completed:
            return None
        closed = session.model_copy(update={
            "end_time": end_time,
            "completed": True,
            "exercise_results": list(results),
        })
        self.sessions[session_id] = closed
        return closed

    async def mark_stats_applied(self, session_id: UUID) -> None:
        if self.fail_marks:
            self.fail_marks -= 1
            raise ConnectionError("session store unavailable")
        self.sessions[session_id] = self.sessions[session_id].model_copy(
            update={"stats_applied": True}
        )

    async def list_user_sessions(self, user_id: str, limit: int):
        owned = [s for s in self.sessions.values() if s.user_id == user_id]
        return sorted(owned, key=lambda s: s.start_time, reverse=True)[:limit]

    async def list_open_sessions(self, user_id: str, started_before: datetime):
        owned = [
            s for s in self.sessions.values()
            if s.user_id == user_id and not s.completed and s.start_time < started_before
        ]
        return sorted(owned, key=lambda s: s.start_time)

    async def list_unapplied_sessions(self, user_id: str):
        owned = [
            s for s in self.sessions.values()
            if s.user_id == user_id and s.completed and not s.stats_applied
        ]
        return sorted(owned, key=lambda s: s.end_time)


class InMemoryStatsStore(StatsStore):
    """
    Versioned stats with hooks for failure injection.

    Attributes:
        fail_writes: Number of upcoming save_stats calls that raise.
        conflict_writes: Number of upcoming save_stats calls that report a conflict.
    """

    def __init__(self):
        self.stats: Dict[str, UserStats] = {}
        self.fail_writes = 0
        self.conflict_writes = 0
        self.writes = 0

    async def get_stats(self, user_id: str) -> Optional[UserStats]:
        await asyncio.sleep(0)
        return self.stats.get(user_id)

    async def save_stats(self, stats: UserStats, expected_version: Optional[int]):
        await asyncio.sleep(0)
        if self.fail_writes:
            self.fail_writes -= 1
            raise ConnectionError("stats store unavailable")
        if self.conflict_writes:
            self.conflict_writes -= 1
            return None

        current = self.stats.get(stats.user_id)
        current_version = current.version if current else None
        if current_version != expected_version:
            return None

        saved = stats.model_copy(update={"version": (expected_version or 0) + 1})
        self.stats[stats.user_id] = saved
        self.writes += 1
        return saved
