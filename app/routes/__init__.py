"""StreakFit API - Routes Package."""

from app.routes import (
    catalog,
    sessions,
    stats,
)

__all__ = [
    "catalog",
    "sessions",
    "stats",
]
