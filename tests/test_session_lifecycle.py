import asyncio
from uuid import uuid4

import pytest

from app.schemas.session import ExerciseResult
from app.utils.errors import (
    AlreadyClosedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)


def results_for(workout):
    return [
        ExerciseResult(exercise_id=workout.exercises[0].exercise_id, reps_completed=10, sets_completed=3),
        ExerciseResult(exercise_id=workout.exercises[1].exercise_id, duration_completed=45),
    ]


async def run_session(manager, clock, workout, user="alice", millis=1500000):
    session_id = await manager.start_session(user, workout.id)
    clock.advance(milliseconds=millis)
    return await manager.complete_session(user, session_id, results_for(workout))


@pytest.mark.asyncio
async def test_start_session_requires_identity(manager, workout):
    with pytest.raises(UnauthorizedError):
        await manager.start_session(None, workout.id)


@pytest.mark.asyncio
async def test_start_session_opens_empty_session(manager, session_store, workout, clock):
    session_id = await manager.start_session("alice", workout.id)
    session = session_store.sessions[session_id]
    assert session.user_id == "alice"
    assert session.workout_id == workout.id
    assert session.start_time == clock.now
    assert session.completed is False
    assert session.end_time is None
    assert session.exercise_results == []


@pytest.mark.asyncio
async def test_start_session_does_not_check_catalog(manager, session_store):
    session_id = await manager.start_session("alice", uuid4())
    assert session_id in session_store.sessions


@pytest.mark.asyncio
async def test_scenarios_a_b_c(manager, clock, workout):
    # A: first session, 25 minutes
    outcome = await run_session(manager, clock, workout, millis=1500000)
    assert outcome.success and outcome.stats_updated
    assert outcome.duration_minutes == 25
    stats = outcome.stats
    assert (stats.total_workouts, stats.total_minutes) == (1, 25)
    assert (stats.current_streak, stats.longest_streak) == (1, 1)

    # B: next calendar day, 10 minutes
    clock.advance(days=1)
    stats = (await run_session(manager, clock, workout, millis=600000)).stats
    assert (stats.total_workouts, stats.total_minutes) == (2, 35)
    assert (stats.current_streak, stats.longest_streak) == (2, 2)

    # C: three calendar days later
    clock.advance(days=3)
    stats = (await run_session(manager, clock, workout, millis=600000)).stats
    assert stats.current_streak == 1
    assert stats.longest_streak == 2
    assert stats.total_workouts == 3


@pytest.mark.asyncio
async def test_complete_session_closes_once(manager, session_store, stats_store, clock, workout):
    session_id = await manager.start_session("alice", workout.id)
    clock.advance(minutes=12)
    await manager.complete_session("alice", session_id, results_for(workout))

    session = session_store.sessions[session_id]
    assert session.completed is True
    assert session.end_time > session.start_time
    assert session.exercise_results == results_for(workout)
    assert session.stats_applied is True

    clock.advance(minutes=1)
    with pytest.raises(AlreadyClosedError):
        await manager.complete_session("alice", session_id, [])

    assert session_store.sessions[session_id].exercise_results == results_for(workout)
    assert stats_store.stats["alice"].total_workouts == 1


@pytest.mark.asyncio
async def test_complete_session_replaces_results(manager, session_store, workout):
    session_id = await manager.start_session("alice", workout.id)
    final = results_for(workout)[:1]
    await manager.complete_session("alice", session_id, final)
    assert session_store.sessions[session_id].exercise_results == final


@pytest.mark.asyncio
async def test_end_time_after_start_even_without_elapsed_time(manager, session_store, workout):
    session_id = await manager.start_session("alice", workout.id)
    outcome = await manager.complete_session("alice", session_id, [])
    session = session_store.sessions[session_id]
    assert session.end_time > session.start_time
    assert outcome.duration_minutes == 0


@pytest.mark.asyncio
async def test_complete_session_errors(manager, workout):
    session_id = await manager.start_session("alice", workout.id)

    with pytest.raises(UnauthorizedError):
        await manager.complete_session(None, session_id, [])
    with pytest.raises(NotFoundError):
        await manager.complete_session("alice", uuid4(), [])


@pytest.mark.asyncio
async def test_scenario_d_foreign_session_is_forbidden(manager, session_store, stats_store, workout, caplog):
    session_id = await manager.start_session("alice", workout.id)
    before = session_store.sessions[session_id]

    with pytest.raises(ForbiddenError):
        await manager.complete_session("mallory", session_id, results_for(workout))

    assert session_store.sessions[session_id] == before
    assert stats_store.stats == {}
    assert "mallory" in caplog.text


@pytest.mark.asyncio
async def test_scenario_e_double_start_reuses_open_session(manager, session_store, stats_store, clock, workout):
    first, second = await asyncio.gather(
        manager.start_session("alice", workout.id),
        manager.start_session("alice", workout.id),
    )
    assert first == second
    assert len(session_store.sessions) == 1

    clock.advance(minutes=20)
    await manager.complete_session("alice", first, results_for(workout))
    with pytest.raises(AlreadyClosedError):
        await manager.complete_session("alice", second, results_for(workout))
    assert stats_store.stats["alice"].total_workouts == 1


@pytest.mark.asyncio
async def test_restart_after_dedup_window_opens_new_session(manager, session_store, clock, workout):
    first = await manager.start_session("alice", workout.id)
    clock.advance(seconds=manager.start_dedup_seconds + 1)
    second = await manager.start_session("alice", workout.id)
    assert first != second
    assert len(session_store.sessions) == 2


@pytest.mark.asyncio
async def test_concurrent_completions_for_one_user_both_count(manager, stats_store, clock, workout):
    first = await manager.start_session("alice", workout.id)
    second = await manager.start_session("alice", uuid4())
    clock.advance(minutes=10)

    await asyncio.gather(
        manager.complete_session("alice", first, []),
        manager.complete_session("alice", second, []),
    )

    stats = stats_store.stats["alice"]
    assert stats.total_workouts == 2
    assert stats.total_minutes == 20


@pytest.mark.asyncio
async def test_stats_write_retries_on_version_conflict(manager, stats_store, clock, workout):
    stats_store.conflict_writes = 2
    outcome = await run_session(manager, clock, workout)
    assert outcome.stats_updated
    assert stats_store.stats["alice"].total_workouts == 1


@pytest.mark.asyncio
async def test_stats_failure_keeps_session_closed_and_retry_applies_once(
    manager, session_store, stats_store, clock, workout
):
    stats_store.fail_writes = 1
    session_id = await manager.start_session("alice", workout.id)
    clock.advance(minutes=25)
    outcome = await manager.complete_session("alice", session_id, results_for(workout))

    assert outcome.success is True
    assert outcome.stats_updated is False
    assert outcome.stats is None
    session = session_store.sessions[session_id]
    assert session.completed is True
    assert session.stats_applied is False
    assert "alice" not in stats_store.stats

    assert await manager.retry_pending_stats("alice") == 1
    stats = stats_store.stats["alice"]
    assert (stats.total_workouts, stats.total_minutes) == (1, 25)
    assert stats.last_workout_date == session.end_time

    assert await manager.retry_pending_stats("alice") == 0
    assert stats_store.stats["alice"].total_workouts == 1


@pytest.mark.asyncio
async def test_unflagged_session_is_not_counted_twice_on_retry(
    manager, session_store, stats_store, clock, workout
):
    session_store.fail_marks = 1
    session_id = await manager.start_session("alice", workout.id)
    clock.advance(minutes=25)
    outcome = await manager.complete_session("alice", session_id, results_for(workout))

    assert outcome.stats_updated is True
    assert (outcome.stats.total_workouts, outcome.stats.total_minutes) == (1, 25)
    assert session_store.sessions[session_id].stats_applied is False
    assert stats_store.stats["alice"].applied_session_ids == [session_id]

    assert await manager.retry_pending_stats("alice") == 1
    stats = stats_store.stats["alice"]
    assert (stats.total_workouts, stats.total_minutes) == (1, 25)
    assert stats_store.writes == 1
    assert session_store.sessions[session_id].stats_applied is True

    assert await manager.retry_pending_stats("alice") == 0
    assert stats_store.stats["alice"].total_workouts == 1


@pytest.mark.asyncio
async def test_applied_session_ids_stay_bounded(manager, stats_store, clock, workout):
    from app.services.streaks import APPLIED_SESSION_WINDOW

    for _ in range(APPLIED_SESSION_WINDOW + 3):
        await run_session(manager, clock, workout, millis=60000)
        clock.advance(minutes=5)

    stats = stats_store.stats["alice"]
    assert stats.total_workouts == APPLIED_SESSION_WINDOW + 3
    assert len(stats.applied_session_ids) == APPLIED_SESSION_WINDOW


@pytest.mark.asyncio
async def test_exhausted_conflicts_report_stats_pending(manager, stats_store, clock, workout):
    stats_store.conflict_writes = manager.cas_max_attempts
    outcome = await run_session(manager, clock, workout)
    assert outcome.stats_updated is False

    stats_store.conflict_writes = manager.cas_max_attempts
    with pytest.raises(ConflictError):
        await manager.retry_pending_stats("alice")


@pytest.mark.asyncio
async def test_retry_pending_stats_requires_identity(manager):
    with pytest.raises(UnauthorizedError):
        await manager.retry_pending_stats(None)


@pytest.mark.asyncio
async def test_list_user_sessions(manager, catalog, clock, workout):
    assert await manager.list_user_sessions(None) == []

    ids = []
    for _ in range(22):
        ids.append(await manager.start_session("alice", workout.id))
        clock.advance(minutes=5)
    await manager.start_session("bob", workout.id)

    listed = await manager.list_user_sessions("alice")
    assert len(listed) == 20
    assert [s.id for s, _ in listed] == list(reversed(ids))[:20]
    assert all(w.id == workout.id for _, w in listed)


@pytest.mark.asyncio
async def test_list_user_sessions_drops_removed_workouts(manager, catalog, clock, workout):
    kept = await manager.start_session("alice", workout.id)
    clock.advance(minutes=5)
    await manager.start_session("alice", uuid4())

    listed = await manager.list_user_sessions("alice")
    assert [s.id for s, _ in listed] == [kept]


@pytest.mark.asyncio
async def test_get_user_stats(manager, clock, workout):
    assert await manager.get_user_stats(None) is None
    assert await manager.get_user_stats("alice") is None

    await run_session(manager, clock, workout)
    stats = await manager.get_user_stats("alice")
    assert stats.total_workouts == 1
    assert stats.favorite_category == "hiit"


@pytest.mark.asyncio
async def test_abandoned_sessions_are_reported_not_closed(manager, session_store, clock, workout):
    stale = await manager.start_session("alice", workout.id)
    clock.advance(hours=manager.abandoned_after_hours + 1)
    fresh = await manager.start_session("alice", workout.id)

    abandoned = await manager.list_abandoned_sessions("alice")
    assert [s.id for s in abandoned] == [stale]
    assert session_store.sessions[stale].completed is False
    assert fresh not in [s.id for s in abandoned]
    assert await manager.list_abandoned_sessions(None) == []


@pytest.mark.asyncio
async def test_total_minutes_is_sum_of_rounded_durations(manager, stats_store, clock, workout):
    durations_ms = [61000, 89000, 90000, 1500000, 29000]
    for millis in durations_ms:
        await run_session(manager, clock, workout, millis=millis)
        clock.advance(hours=1)

    expected = sum(int(ms / 60000 + 0.5) for ms in durations_ms)
    assert stats_store.stats["alice"].total_minutes == expected
    assert stats_store.stats["alice"].total_workouts == len(durations_ms)
