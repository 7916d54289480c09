# app/services/streaks.py
"""
StreakFit API - Streak & Stats Aggregation.

Recomputes a user's cumulative totals and consecutive-day streak when a
session completes.

Streaks compare calendar dates, not rolling 24h windows:
- same day as the last completion: streak unchanged
- the day after: streak + 1
- anything else: streak back to 1

The calendar day comes from the completion timestamp in the configured
timezone (server local time when none is configured).
"""

import math
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from app.schemas.session import UserStats

# Session ids kept on the stats record for retry de-duplication
APPLIED_SESSION_WINDOW = 50


def calendar_day(moment: datetime, tz: Optional[str] = None) -> date:
    """
    Calendar date of a timestamp.

    Args:
        moment: Timestamp (naive values are taken as UTC).
        tz: IANA timezone name, or None for server local time.

    Returns:
        date: Local calendar date of `moment`.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=ZoneInfo("UTC"))
    if tz:
        return moment.astimezone(ZoneInfo(tz)).date()
    return moment.astimezone().date()


def duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between two timestamps, halves rounded up."""
    elapsed_ms = (end_time - start_time) / timedelta(milliseconds=1)
    return int(math.floor(elapsed_ms / 60000 + 0.5))


def _favorite(counts: dict, current: Optional[str]) -> Optional[str]:
    if not counts:
        return current
    best = max(counts.values())
    if current is not None and counts.get(current) == best:
        return current
    return next(name for name, count in counts.items() if count == best)


def aggregate_stats(
    existing: Optional[UserStats],
    user_id: str,
    completed_at: datetime,
    minutes: int,
    tz: Optional[str] = None,
    category: Optional[str] = None,
    session_id: Optional[UUID] = None,
) -> UserStats:
    """
    Fold one completed session into a user's stats.

    Args:
        existing: Current stats, or None for a first completion.
        user_id: Owning user.
        completed_at: Completion timestamp of the session.
        minutes: Session duration in whole minutes.
        tz: Timezone for the day boundary.
        category: Workout category of the completed session, if known.
        session_id: Completed session, remembered in `applied_session_ids`.

    Returns:
        UserStats: New stats. `version` is carried over unchanged.
    """
    counts = dict(existing.category_counts) if existing else {}
    if category:
        counts[category] = counts.get(category, 0) + 1
    favorite = _favorite(counts, existing.favorite_category if existing else None)
    applied = list(existing.applied_session_ids) if existing else []
    if session_id is not None:
        applied = (applied + [session_id])[-APPLIED_SESSION_WINDOW:]

    if existing is None:
        return UserStats(
            user_id=user_id,
            total_workouts=1,
            total_minutes=minutes,
            current_streak=1,
            longest_streak=1,
            last_workout_date=completed_at,
            favorite_category=favorite,
            category_counts=counts,
            applied_session_ids=applied,
        )

    today = calendar_day(completed_at, tz)
    last_day = (
        calendar_day(existing.last_workout_date, tz)
        if existing.last_workout_date
        else None
    )

    if last_day == today:
        current_streak = existing.current_streak
    elif last_day == today - timedelta(days=1):
        current_streak = existing.current_streak + 1
    else:
        current_streak = 1

    return UserStats(
        user_id=existing.user_id,
        total_workouts=existing.total_workouts + 1,
        total_minutes=existing.total_minutes + minutes,
        current_streak=current_streak,
        longest_streak=max(existing.longest_streak, current_streak),
        last_workout_date=completed_at,
        favorite_category=favorite,
        category_counts=counts,
        applied_session_ids=applied,
        version=existing.version,
    )
