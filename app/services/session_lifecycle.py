# app/services/session_lifecycle.py
"""
StreakFit API - Session Lifecycle Service.

Opens workout sessions, closes them exactly once and folds each closed
session into the owner's stats.

Session states:
- open: created by start_session, no end_time
- closed: end_time set, completed=True, results frozen (terminal)

Closing writes the session first. A failed stats write never undoes the
closure; the session keeps stats_applied=False and retry_pending_stats
applies it later.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple
from uuid import UUID

from app.schemas.catalog import Workout
from app.schemas.session import (
    CompletionOutcome,
    ExerciseResult,
    UserStats,
    WorkoutSession,
)
from app.services.cache import CacheService
from app.services.streaks import aggregate_stats, duration_minutes
from app.services.stores import CatalogStore, SessionStore, StatsStore
from app.utils.errors import (
    AlreadyClosedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionLifecycleManager:
    """
    Session lifecycle and stats aggregation.

    Attributes:
        sessions: Session store.
        stats: Stats store.
        catalog: Catalog store, used to join workouts and read categories.
        cache: Provides the start and stats locks.
        clock: Returns the current aware UTC time.
        streak_timezone: Timezone for the streak day boundary.
        history_limit: Max sessions returned by list_user_sessions.
        start_dedup_seconds: Window in which a repeated start reuses the open session.
        abandoned_after_hours: Age after which an open session is reported.
        cas_max_attempts: Compare-and-swap attempts per stats write.
    """

    def __init__(
        self,
        sessions: SessionStore,
        stats: StatsStore,
        catalog: CatalogStore,
        cache: CacheService,
        clock: Callable[[], datetime] = _utcnow,
        streak_timezone: Optional[str] = None,
        history_limit: int = 20,
        start_dedup_seconds: int = 30,
        abandoned_after_hours: int = 24,
        cas_max_attempts: int = 5,
    ):
        self.sessions = sessions
        self.stats = stats
        self.catalog = catalog
        self.cache = cache
        self.clock = clock
        self.streak_timezone = streak_timezone
        self.history_limit = history_limit
        self.start_dedup_seconds = start_dedup_seconds
        self.abandoned_after_hours = abandoned_after_hours
        self.cas_max_attempts = cas_max_attempts

    async def start_session(self, user_id: Optional[str], workout_id: UUID) -> UUID:
        """
        Open a session for a workout.

        A repeated start for the same workout within the dedup window
        returns the session that is already open.

        Args:
            user_id: Caller identity.
            workout_id: Workout to start (not validated against the catalog).

        Returns:
            UUID: Session id.

        Raises:
            UnauthorizedError: No caller identity.
        """
        if not user_id:
            raise UnauthorizedError()

        async with self.cache.lock(f"session-start:{user_id}:{workout_id}"):
            now = self.clock()

            if self.start_dedup_seconds > 0:
                existing = await self.sessions.find_open_session(
                    user_id,
                    workout_id,
                    started_after=now - timedelta(seconds=self.start_dedup_seconds)
                )
                if existing:
                    logger.info(
                        f"Reusing open session {existing.id} for user {user_id}, workout {workout_id}"
                    )
                    return existing.id

            session = await self.sessions.insert_session(
                WorkoutSession(user_id=user_id, workout_id=workout_id, start_time=now)
            )

        logger.info(f"Started session {session.id} for user {user_id}, workout {workout_id}")
        return session.id

    async def complete_session(
        self,
        user_id: Optional[str],
        session_id: UUID,
        results: Sequence[ExerciseResult]
    ) -> CompletionOutcome:
        """
        Close a session and update the owner's stats.

        Args:
            user_id: Caller identity.
            session_id: Session to close.
            results: Full, final result list (replaces anything stored).

        Returns:
            CompletionOutcome: `stats_updated` is False if the session was
            saved but the stats write failed.

        Raises:
            UnauthorizedError: No caller identity.
            NotFoundError: Unknown session.
            ForbiddenError: Session owned by someone else.
            AlreadyClosedError: Session already closed.
        """
        if not user_id:
            raise UnauthorizedError()

        session = await self.sessions.get_session(session_id)
        if not session:
            raise NotFoundError("Session not found")

        if session.user_id != user_id:
            logger.warning(
                f"User {user_id} tried to complete session {session_id} owned by {session.user_id}"
            )
            raise ForbiddenError("Session belongs to another user")

        if session.completed:
            raise AlreadyClosedError()

        # end_time must land strictly after start_time
        end_time = max(self.clock(), session.start_time + timedelta(milliseconds=1))

        closed = await self.sessions.close_session(session_id, end_time, list(results))
        if closed is None:
            raise AlreadyClosedError()

        minutes = duration_minutes(closed.start_time, closed.end_time)
        logger.info(f"Closed session {session_id} for user {user_id} after {minutes} min")

        try:
            stats = await self._apply_stats(closed.id, user_id, minutes)
        except Exception as e:
            logger.error(
                f"Session {session_id} saved but stats update failed: {e}",
                exc_info=True
            )
            return CompletionOutcome(
                session_id=session_id,
                duration_minutes=minutes,
                stats_updated=False
            )

        return CompletionOutcome(
            session_id=session_id,
            duration_minutes=minutes,
            stats_updated=True,
            stats=stats
        )

    async def retry_pending_stats(self, user_id: Optional[str]) -> int:
        """
        Apply stats for closed sessions whose stats write failed.

        Sessions already counted in the stats are only flagged, not
        counted again.

        Returns:
            int: Number of sessions settled.

        Raises:
            UnauthorizedError: No caller identity.
        """
        if not user_id:
            raise UnauthorizedError()

        applied = 0
        for session in await self.sessions.list_unapplied_sessions(user_id):
            minutes = duration_minutes(session.start_time, session.end_time)
            if await self._apply_stats(session.id, user_id, minutes, retrying=True):
                applied += 1

        if applied:
            logger.info(f"Applied pending stats for {applied} sessions of user {user_id}")
        return applied

    async def _apply_stats(
        self,
        session_id: UUID,
        user_id: str,
        minutes: int,
        retrying: bool = False
    ) -> Optional[UserStats]:
        """
        Fold one closed session into the user's stats, once.

        The session id is written together with the stats, so a session
        whose stats landed but whose flag did not is only flagged on retry.

        Returns:
            The stored stats, or None when a retry finds the session
            already applied.
        """
        async with self.cache.lock(f"stats:{user_id}"):
            # Re-read under the lock; a concurrent retry may have applied it
            session = await self.sessions.get_session(session_id)
            if session.stats_applied:
                return None if retrying else await self.stats.get_stats(user_id)

            workout = await self.catalog.get_workout(session.workout_id)
            category = workout.category.value if workout else None

            for attempt in range(1, self.cas_max_attempts + 1):
                existing = await self.stats.get_stats(user_id)
                if existing and session_id in existing.applied_session_ids:
                    logger.info(f"Stats for user {user_id} already include session {session_id}")
                    await self._mark_applied(session_id)
                    return existing

                updated = aggregate_stats(
                    existing,
                    user_id,
                    completed_at=session.end_time,
                    minutes=minutes,
                    tz=self.streak_timezone,
                    category=category,
                    session_id=session_id
                )
                saved = await self.stats.save_stats(
                    updated,
                    expected_version=existing.version if existing else None
                )
                if saved:
                    await self._mark_applied(session_id)
                    return saved
                logger.info(
                    f"Stats for user {user_id} changed concurrently "
                    f"(attempt {attempt}/{self.cas_max_attempts})"
                )

        raise ConflictError(
            "Stats update conflicted",
            detail=f"Gave up after {self.cas_max_attempts} attempts"
        )

    async def _mark_applied(self, session_id: UUID) -> None:
        # Stats already hold the session id; a later retry sets the flag
        try:
            await self.sessions.mark_stats_applied(session_id)
        except Exception as e:
            logger.warning(
                f"Stats applied but session {session_id} not flagged: {e}",
                exc_info=True
            )

    async def list_user_sessions(
        self,
        user_id: Optional[str]
    ) -> List[Tuple[WorkoutSession, Workout]]:
        """
        Recent sessions of the caller, newest first, joined with their workouts.

        Sessions whose workout left the catalog are dropped.
        """
        if not user_id:
            return []

        sessions = await self.sessions.list_user_sessions(user_id, self.history_limit)

        workouts = {}
        joined = []
        for session in sessions:
            if session.workout_id not in workouts:
                workouts[session.workout_id] = await self.catalog.get_workout(session.workout_id)
            workout = workouts[session.workout_id]
            if workout:
                joined.append((session, workout))
        return joined

    async def get_user_stats(self, user_id: Optional[str]) -> Optional[UserStats]:
        """Caller's stats, or None if anonymous or never completed a session."""
        if not user_id:
            return None
        return await self.stats.get_stats(user_id)

    async def list_abandoned_sessions(self, user_id: Optional[str]) -> List[WorkoutSession]:
        """
        Caller's open sessions older than the abandonment threshold.

        Reported only; they stay open.
        """
        if not user_id:
            return []
        cutoff = self.clock() - timedelta(hours=self.abandoned_after_hours)
        return await self.sessions.list_open_sessions(user_id, started_before=cutoff)
