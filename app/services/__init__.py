"""StreakFit API - Services Package."""

from .auth import (
    create_access_token,
    verify_token,
)
from .cache import cache_service, CacheService
from .session_lifecycle import SessionLifecycleManager
from .streaks import aggregate_stats, calendar_day, duration_minutes

__all__ = [
    "create_access_token",
    "verify_token",
    "cache_service",
    "CacheService",
    "SessionLifecycleManager",
    "aggregate_stats",
    "calendar_day",
    "duration_minutes",
]
