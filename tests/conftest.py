import os

# Settings are read at import time; keep tests off real services
os.environ.setdefault("DATABASE_URL", "mongodb://localhost:27017/streakfit_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_LAZY_INIT", "false")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("SENTRY_DSN", "")

from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402

from app.schemas.catalog import (  # noqa: E402
    Exercise,
    Workout,
    WorkoutCategory,
    WorkoutExercise,
)
from app.services.cache import CacheService  # noqa: E402
from app.services.session_lifecycle import SessionLifecycleManager  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeClock,
    InMemoryCatalogStore,
    InMemorySessionStore,
    InMemoryStatsStore,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    store = InMemoryCatalogStore()
    push_up = store.add_exercise(Exercise(
        id=uuid4(),
        name="Push-up",
        instructions=["Hands under shoulders", "Lower chest", "Push back up"],
        muscle_groups=["chest", "triceps"],
    ))
    plank = store.add_exercise(Exercise(id=uuid4(), name="Plank", muscle_groups=["core"]))
    squat = store.add_exercise(Exercise(id=uuid4(), name="Squat", muscle_groups=["legs"]))
    store.add_workout(Workout(
        id=uuid4(),
        name="Morning Burner",
        estimated_duration=15,
        category=WorkoutCategory.HIIT,
        exercises=[
            WorkoutExercise(exercise_id=push_up.id, reps=10, sets=3),
            WorkoutExercise(exercise_id=plank.id, duration=45),
            WorkoutExercise(exercise_id=squat.id, reps=15),
        ],
    ))
    return store


@pytest.fixture
def workout(catalog):
    return next(iter(catalog.workouts.values()))


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def stats_store():
    return InMemoryStatsStore()


@pytest.fixture
def manager(session_store, stats_store, catalog, clock):
    return SessionLifecycleManager(
        sessions=session_store,
        stats=stats_store,
        catalog=catalog,
        cache=CacheService(None),
        clock=clock,
        streak_timezone="UTC",
    )
