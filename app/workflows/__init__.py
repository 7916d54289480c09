# app/workflows/__init__.py
"""
StreakFit Workflows Package.

Client-side workflows driving the session API.
"""

from app.workflows.workout_runner import (
    CancellationToken,
    RunnerPhase,
    RunnerState,
    WorkoutRunner,
)

__all__ = [
    "CancellationToken",
    "RunnerPhase",
    "RunnerState",
    "WorkoutRunner",
]
