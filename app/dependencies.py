"""
StreakFit API - FastAPI Dependencies.

Dependency injection helpers for routes (MongoDB version).
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from app.middleware.auth import optional_jwt_bearer
from app.services.cache import cache_service
from app.services.mongo_stores import (
    MongoCatalogStore,
    MongoSessionStore,
    MongoStatsStore,
)
from app.services.session_lifecycle import SessionLifecycleManager
from app.services.stores import CatalogStore
from settings import settings


async def get_caller_id(
    user_id: Optional[str] = Depends(optional_jwt_bearer)
) -> Optional[str]:
    """
    Caller identity from the bearer token, if any.

    Read routes accept anonymous callers; the session manager rejects
    anonymous writes.
    """
    return user_id


@lru_cache
def get_catalog_store() -> CatalogStore:
    return MongoCatalogStore()


@lru_cache
def get_session_manager() -> SessionLifecycleManager:
    """Process-wide session lifecycle manager backed by MongoDB."""
    return SessionLifecycleManager(
        sessions=MongoSessionStore(),
        stats=MongoStatsStore(),
        catalog=get_catalog_store(),
        cache=cache_service,
        streak_timezone=settings.STREAK_TIMEZONE,
        history_limit=settings.SESSION_HISTORY_LIMIT,
        start_dedup_seconds=settings.SESSION_START_DEDUP_SECONDS,
        abandoned_after_hours=settings.ABANDONED_SESSION_HOURS,
        cas_max_attempts=settings.STATS_CAS_MAX_ATTEMPTS,
    )
