"""
StreakFit Console Workout Runner

Walks through a workout against a running StreakFit API, hitting every
target, and prints the stats returned on completion.

Usage:
    STREAKFIT_TOKEN=<jwt> python scripts/run_workout.py <workout_id> \
        [--api http://localhost:8000] [--rest-seconds 60] [--quit-after N]
"""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from uuid import UUID

# Add backend to path
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

from app.integrations.session_client import HttpSessionClient  # noqa: E402
from app.workflows.workout_runner import (  # noqa: E402
    DEFAULT_REST_SECONDS,
    RunnerPhase,
    RunnerState,
    WorkoutRunner,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def print_state(state: RunnerState) -> None:
    if state.phase is RunnerPhase.RESTING:
        mins, secs = divmod(state.countdown, 60)
        print(f"\r  rest {mins}:{secs:02d}", end="", flush=True)
    else:
        print(f"\n[{state.phase.value}] exercise {state.current_index + 1}")


async def run(workout_id: UUID, api: str, token: str, rest_seconds: int, quit_after: int) -> int:
    async with HttpSessionClient(api, token=token) as client:
        detail = await client.get_workout_detail(workout_id)
        runner = WorkoutRunner(
            detail,
            client,
            rest_seconds=rest_seconds,
            on_change=print_state
        )
        await runner.begin()

        for done, step in enumerate(detail.steps):
            if quit_after and done >= quit_after:
                runner.quit()
                logger.info("Quit early; the session stays open")
                return 0

            print(f"{step.exercise.name}: reps={step.reps} sets={step.sets} duration={step.duration}")
            for _ in range(step.reps or 0):
                runner.increment_reps()
            for _ in range(step.sets or 0):
                runner.increment_sets()

            await runner.complete_exercise()
            await runner.wait_for_rest()

        outcome = runner.outcome
        if outcome and outcome.stats:
            stats = outcome.stats
            print(
                f"\nDone in {outcome.duration_minutes} min. "
                f"Workouts: {stats.total_workouts}, minutes: {stats.total_minutes}, "
                f"streak: {stats.current_streak} (best {stats.longest_streak})"
            )
        elif outcome:
            print("\nWorkout saved, stats pending")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a StreakFit workout from the console")
    parser.add_argument("workout_id", type=UUID)
    parser.add_argument("--api", default=os.environ.get("STREAKFIT_API", "http://localhost:8000"))
    parser.add_argument("--rest-seconds", type=int, default=DEFAULT_REST_SECONDS)
    parser.add_argument("--quit-after", type=int, default=0, help="Quit after N exercises")
    args = parser.parse_args()

    token = os.environ.get("STREAKFIT_TOKEN")
    if not token:
        logger.error("STREAKFIT_TOKEN is not set")
        return 1

    return asyncio.run(run(args.workout_id, args.api, token, args.rest_seconds, args.quit_after))


if __name__ == "__main__":
    sys.exit(main())
