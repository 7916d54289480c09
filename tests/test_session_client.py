from uuid import uuid4

import httpx
import pytest

from app.dependencies import get_catalog_store, get_session_manager
from app.integrations.session_client import HttpSessionClient
from app.schemas.session import ExerciseResult
from app.services.auth import create_access_token
from app.utils.errors import (
    AlreadyClosedError,
    ForbiddenError,
    NotFoundError,
    StreakFitException,
    UnauthorizedError,
)
from app.workflows.workout_runner import RunnerPhase, WorkoutRunner
from main import app


@pytest.fixture
def asgi_app(manager, catalog):
    app.dependency_overrides[get_session_manager] = lambda: manager
    app.dependency_overrides[get_catalog_store] = lambda: catalog
    yield app
    app.dependency_overrides.clear()


def make_client(asgi_app, user="alice"):
    token = create_access_token({"sub": user}) if user else None
    return HttpSessionClient(
        "http://testserver",
        token=token,
        transport=httpx.ASGITransport(app=asgi_app),
    )


@pytest.mark.asyncio
async def test_start_and_complete_over_http(asgi_app, clock, workout, session_store):
    async with make_client(asgi_app) as client:
        session_id = await client.start_session(workout.id)
        clock.advance(minutes=30)
        outcome = await client.complete_session(session_id, [
            ExerciseResult(exercise_id=workout.exercises[1].exercise_id, duration_completed=45),
        ])

    assert outcome.success and outcome.stats_updated
    assert outcome.duration_minutes == 30
    stored = session_store.sessions[session_id].exercise_results
    assert stored[0].duration_completed == 45
    assert stored[0].reps_completed is None


@pytest.mark.asyncio
async def test_errors_map_to_exceptions(asgi_app, workout):
    async with make_client(asgi_app, user=None) as anonymous:
        with pytest.raises(UnauthorizedError):
            await anonymous.start_session(workout.id)

    async with make_client(asgi_app) as alice, make_client(asgi_app, "mallory") as mallory:
        with pytest.raises(NotFoundError):
            await alice.complete_session(uuid4(), [])
        with pytest.raises(NotFoundError):
            await alice.get_workout_detail(uuid4())

        session_id = await alice.start_session(workout.id)
        with pytest.raises(ForbiddenError):
            await mallory.complete_session(session_id, [])

        await alice.complete_session(session_id, [])
        with pytest.raises(AlreadyClosedError):
            await alice.complete_session(session_id, [])


@pytest.mark.asyncio
async def test_unknown_error_body_raises_base_exception():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    async with HttpSessionClient("http://api", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(StreakFitException) as excinfo:
            await client.start_session(uuid4())
    assert excinfo.value.status_code == 502


@pytest.mark.asyncio
async def test_runner_over_http(asgi_app, workout, stats_store):
    async def instant_tick():
        pass

    async with make_client(asgi_app) as client:
        detail = await client.get_workout_detail(workout.id)
        runner = WorkoutRunner(detail, client, rest_seconds=2, tick=instant_tick)
        await runner.begin()
        while runner.state.phase is not RunnerPhase.FINISHED:
            runner.increment_reps()
            await runner.complete_exercise()
            await runner.wait_for_rest()

    assert len(detail.steps) == 3
    assert stats_store.stats["alice"].total_workouts == 1
