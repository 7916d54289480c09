# app/integrations/session_client.py
"""
StreakFit Session Clients.

What the workout runner uses to open and close sessions:
- LocalSessionClient: calls the lifecycle manager in-process
- HttpSessionClient: calls the REST API over httpx
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

import httpx

from app.schemas.catalog import WorkoutDetail
from app.schemas.session import CompletionOutcome, ExerciseResult
from app.services.session_lifecycle import SessionLifecycleManager
from app.utils.errors import ERRORS_BY_CODE, StreakFitException

logger = logging.getLogger(__name__)


class SessionClient(ABC):
    """Session operations available to the workout runner."""

    @abstractmethod
    async def start_session(self, workout_id: UUID) -> UUID:
        pass

    @abstractmethod
    async def complete_session(
        self,
        session_id: UUID,
        results: Sequence[ExerciseResult]
    ) -> CompletionOutcome:
        pass


class LocalSessionClient(SessionClient):
    """Runs session operations in-process as a fixed user."""

    def __init__(self, manager: SessionLifecycleManager, user_id: Optional[str]):
        self.manager = manager
        self.user_id = user_id

    async def start_session(self, workout_id: UUID) -> UUID:
        return await self.manager.start_session(self.user_id, workout_id)

    async def complete_session(
        self,
        session_id: UUID,
        results: Sequence[ExerciseResult]
    ) -> CompletionOutcome:
        return await self.manager.complete_session(self.user_id, session_id, results)


class HttpSessionClient(SessionClient):
    """
    REST client for the StreakFit API.

    Error responses are raised as the matching StreakFitException subclass.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport
        )

    async def __aenter__(self) -> "HttpSessionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        error_cls = ERRORS_BY_CODE.get(body.get("error")) if isinstance(body, dict) else None
        detail = body.get("detail") if isinstance(body, dict) else None
        if error_cls:
            raise error_cls(detail=detail)
        logger.error(f"StreakFit API error {response.status_code}: {response.text[:200]}")
        raise StreakFitException(
            message=f"Request failed with status {response.status_code}",
            status_code=response.status_code,
            detail=str(detail) if detail else None
        )

    async def get_workout_detail(self, workout_id: UUID) -> WorkoutDetail:
        response = await self._client.get(f"/catalog/workouts/{workout_id}")
        self._raise_for_error(response)
        return WorkoutDetail.model_validate(response.json())

    async def start_session(self, workout_id: UUID) -> UUID:
        response = await self._client.post("/sessions", json={"workout_id": str(workout_id)})
        self._raise_for_error(response)
        return UUID(response.json()["session_id"])

    async def complete_session(
        self,
        session_id: UUID,
        results: Sequence[ExerciseResult]
    ) -> CompletionOutcome:
        response = await self._client.post(
            f"/sessions/{session_id}/complete",
            json={
                "exercise_results": [
                    result.model_dump(mode="json", exclude_none=True) for result in results
                ]
            }
        )
        self._raise_for_error(response)
        return CompletionOutcome.model_validate(response.json())
