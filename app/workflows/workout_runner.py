# app/workflows/workout_runner.py
"""
StreakFit Workout Runner.

Walks a user through a workout's exercises, one at a time, with a rest
countdown between them, and hands the gathered results to the session
client at the end.

Phases:
- initializing: waiting for the session to open, no input accepted
- exercising: current exercise active, rep/set counters live
- resting: countdown running, next exercise queued
- finished: results submitted (terminal)
- quit: abandoned without submitting (terminal)

All runtime state lives in one RunnerState record. A single timer task
drives the rest countdown from one tick source; quitting cancels it
through the runner's cancellation token.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

from app.integrations.session_client import SessionClient
from app.schemas.catalog import WorkoutDetail, WorkoutStep
from app.schemas.session import CompletionOutcome, ExerciseResult
from app.utils.errors import RunnerStateError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_REST_SECONDS = 60


class RunnerPhase(str, Enum):
    INITIALIZING = "initializing"
    EXERCISING = "exercising"
    RESTING = "resting"
    FINISHED = "finished"
    QUIT = "quit"


TERMINAL_PHASES = {RunnerPhase.FINISHED, RunnerPhase.QUIT}


@dataclass
class RunnerState:
    """Transient runtime state of one workout run (never persisted)."""
    phase: RunnerPhase = RunnerPhase.INITIALIZING
    current_index: int = 0
    countdown: int = 0
    reps: int = 0
    sets: int = 0
    results: List[ExerciseResult] = field(default_factory=list)
    session_id: Optional[UUID] = None


class CancellationToken:
    """Set once; checked by the rest timer and before submitting results."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


async def _one_second() -> None:
    await asyncio.sleep(1)


class WorkoutRunner:
    """
    Finite-state machine for running one workout.

    Args:
        workout: Workout with its resolved steps.
        client: Session operations.
        rest_seconds: Rest between exercises.
        tick: Awaitable that returns once per elapsed second.
        token: Cancellation token, created if not given.
        on_change: Called with the state after every transition and tick.
    """

    def __init__(
        self,
        workout: WorkoutDetail,
        client: SessionClient,
        rest_seconds: int = DEFAULT_REST_SECONDS,
        tick: Callable[[], Awaitable[None]] = _one_second,
        token: Optional[CancellationToken] = None,
        on_change: Optional[Callable[[RunnerState], None]] = None,
    ):
        if not workout.steps:
            raise ValidationError("Workout has no exercises")
        self.workout = workout
        self.client = client
        self.rest_seconds = rest_seconds
        self.token = token or CancellationToken()
        self.state = RunnerState()
        self.outcome: Optional[CompletionOutcome] = None
        self._tick = tick
        self._on_change = on_change
        self._starting: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def current_step(self) -> WorkoutStep:
        return self.workout.steps[self.state.current_index]

    @property
    def is_last_step(self) -> bool:
        return self.state.current_index == len(self.workout.steps) - 1

    @property
    def progress(self) -> float:
        """Share of exercises already behind the current one, 0-100."""
        return round(self.state.current_index / len(self.workout.steps) * 100, 1)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.state)

    def _require(self, *phases: RunnerPhase) -> None:
        if self.state.phase not in phases:
            raise RunnerStateError(
                detail=f"Runner is {self.state.phase.value}, expected "
                       + " or ".join(p.value for p in phases)
            )

    async def begin(self) -> UUID:
        """
        Open the server session.

        Calls made while the start is in flight share it; calls after it
        resolved return the same id.
        """
        if self.state.session_id:
            return self.state.session_id
        self._require(RunnerPhase.INITIALIZING)

        if self._starting is None:
            self._starting = asyncio.ensure_future(
                self.client.start_session(self.workout.workout.id)
            )
        try:
            session_id = await self._starting
        except Exception:
            self._starting = None
            raise

        self.state.session_id = session_id
        if self.state.phase is RunnerPhase.INITIALIZING:
            self.state.phase = RunnerPhase.EXERCISING
            logger.info(f"Session {session_id} started, first exercise: {self.current_step.exercise.name}")
            self._notify()
        return session_id

    def increment_reps(self) -> int:
        self._require(RunnerPhase.EXERCISING)
        self.state.reps += 1
        return self.state.reps

    def decrement_reps(self) -> int:
        self._require(RunnerPhase.EXERCISING)
        self.state.reps = max(0, self.state.reps - 1)
        return self.state.reps

    def increment_sets(self) -> int:
        self._require(RunnerPhase.EXERCISING)
        self.state.sets += 1
        return self.state.sets

    def decrement_sets(self) -> int:
        self._require(RunnerPhase.EXERCISING)
        self.state.sets = max(0, self.state.sets - 1)
        return self.state.sets

    def _build_result(self) -> ExerciseResult:
        step = self.current_step
        return ExerciseResult(
            exercise_id=step.exercise.id,
            reps_completed=self.state.reps if step.reps is not None else None,
            duration_completed=step.duration,
            sets_completed=self.state.sets if step.sets is not None else None
        )

    async def complete_exercise(self) -> RunnerPhase:
        """
        Record the current exercise and move on.

        On the last exercise the session is completed; otherwise the rest
        countdown starts.
        """
        self._require(RunnerPhase.EXERCISING)
        self.state.results.append(self._build_result())

        if self.is_last_step:
            try:
                await self._submit()
            except Exception:
                # Keep the runner on the last exercise so the finish can be retried
                self.state.results.pop()
                raise
            return self.state.phase

        self._start_rest()
        return self.state.phase

    async def skip_exercise(self) -> RunnerPhase:
        """Skip the current exercise; recorded the same way as completing it."""
        return await self.complete_exercise()

    def _start_rest(self) -> None:
        self.state.current_index += 1
        self.state.reps = 0
        self.state.sets = 0

        if self.rest_seconds <= 0:
            self.state.phase = RunnerPhase.EXERCISING
            self._notify()
            return

        self.state.phase = RunnerPhase.RESTING
        self.state.countdown = self.rest_seconds
        self._notify()
        self._timer = asyncio.get_running_loop().create_task(self._run_rest_timer())

    async def _run_rest_timer(self) -> None:
        while self.state.countdown > 0:
            await self._tick()
            if self.token.cancelled:
                return
            self.state.countdown -= 1
            self._notify()

        self.state.phase = RunnerPhase.EXERCISING
        logger.debug(f"Rest over, next exercise: {self.current_step.exercise.name}")
        self._notify()

    async def wait_for_rest(self) -> RunnerPhase:
        """Wait until the running rest countdown ends (or is cancelled)."""
        if self._timer is not None:
            await asyncio.wait({self._timer})
            self._timer = None
        return self.state.phase

    async def finish_early(self) -> CompletionOutcome:
        """
        Complete the session now with the results gathered so far.

        A running rest countdown keeps going until the completion succeeds,
        so a failed finish leaves the runner usable.
        """
        self._require(RunnerPhase.EXERCISING, RunnerPhase.RESTING)
        outcome = await self._submit()
        self._cancel_timer()
        return outcome

    async def _submit(self) -> CompletionOutcome:
        if self.token.cancelled:
            raise RunnerStateError(detail="Runner was cancelled")
        if not self.state.session_id:
            raise RunnerStateError(detail="Session has not started")

        outcome = await self.client.complete_session(
            self.state.session_id,
            list(self.state.results)
        )
        if self.token.cancelled:
            logger.info(f"Completion of session {self.state.session_id} arrived after quit")
            return outcome

        self.outcome = outcome
        self.state.phase = RunnerPhase.FINISHED
        if not outcome.stats_updated:
            logger.warning(f"Session {self.state.session_id} saved, stats pending")
        self._notify()
        return outcome

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def quit(self) -> None:
        """Abandon the run without completing the session."""
        if self.state.phase in TERMINAL_PHASES:
            return
        self.token.cancel()
        self._cancel_timer()
        self.state.phase = RunnerPhase.QUIT
        logger.info(f"Workout quit at exercise {self.state.current_index + 1}, session left open")
        self._notify()
