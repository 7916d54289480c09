"""StreakFit API - Utilities Package."""

from app.utils.errors import (
    StreakFitException,
    UnauthorizedError,
    NotFoundError,
    ValidationError,
    ForbiddenError,
    AlreadyClosedError,
    ConflictError,
    RunnerStateError,
)

__all__ = [
    "StreakFitException",
    "UnauthorizedError",
    "NotFoundError",
    "ValidationError",
    "ForbiddenError",
    "AlreadyClosedError",
    "ConflictError",
    "RunnerStateError",
]
