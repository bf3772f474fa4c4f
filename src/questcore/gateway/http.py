"""HTTP implementation of the remote quest gateway."""

from __future__ import annotations

import logging
from datetime import date
from types import TracebackType
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from questcore.contracts.exceptions import AuthenticationError, GatewayError, NotFoundError
from questcore.contracts.gateway import QuestGateway
from questcore.contracts.models import (
    CreateGoalInput,
    CreateTaskInput,
    Goal,
    Milestone,
    MilestoneStatus,
    Task,
    UpdateGoalInput,
    UpdateTaskInput,
)
from questcore.gateway._rate_limit_transport import RateLimitTransport

_LOG = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_GOALS = TypeAdapter(list[Goal])
_TASKS = TypeAdapter(list[Task])
_MILESTONES = TypeAdapter(list[Milestone])


class HttpQuestGateway(QuestGateway):
    """Talks to the quest REST API with a bearer token.

    Use as an async context manager; the underlying ``httpx.AsyncClient`` is
    opened on enter and closed on exit.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HttpQuestGateway:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
                transport=RateLimitTransport(transport=self._transport, max_retries=self._max_retries),
            )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def list_goals(self) -> list[Goal]:
        payload = await self._request("GET", "/goals", resource="goals")
        return self._parse_list(_GOALS, payload, "goals")

    async def get_goal(self, goal_id: str) -> Goal:
        payload = await self._request("GET", f"/goals/{goal_id}", resource=f"goal {goal_id}")
        return self._parse_model(Goal, payload, "goal")

    async def create_goal(self, input: CreateGoalInput) -> Goal:
        payload = await self._request("POST", "/goals", resource="goals", json=input.payload())
        return self._parse_model(Goal, payload, "goal")

    async def update_goal(self, goal_id: str, input: UpdateGoalInput) -> Goal:
        payload = await self._request("PUT", f"/goals/{goal_id}", resource=f"goal {goal_id}", json=input.payload())
        return self._parse_model(Goal, payload, "goal")

    async def delete_goal(self, goal_id: str) -> None:
        await self._request("DELETE", f"/goals/{goal_id}", resource=f"goal {goal_id}")

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def list_tasks(self, day: date) -> list[Task]:
        payload = await self._request("GET", "/tasks", resource="tasks", params={"date": day.isoformat()})
        return self._parse_list(_TASKS, payload, "tasks")

    async def create_task(self, input: CreateTaskInput) -> Task:
        payload = await self._request("POST", "/tasks", resource="tasks", json=input.payload())
        return self._parse_model(Task, payload, "task")

    async def update_task(self, task_id: str, input: UpdateTaskInput) -> Task:
        payload = await self._request("PUT", f"/tasks/{task_id}", resource=f"task {task_id}", json=input.payload())
        return self._parse_model(Task, payload, "task")

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}", resource=f"task {task_id}")

    # ------------------------------------------------------------------
    # Roadmaps
    # ------------------------------------------------------------------

    async def get_roadmap(self, goal_id: str) -> list[Milestone]:
        payload = await self._request("GET", f"/goals/{goal_id}/roadmap", resource=f"roadmap {goal_id}")
        return self._parse_list(_MILESTONES, payload, "milestones")

    async def request_roadmap_generation(self, goal_id: str) -> None:
        await self._request("POST", f"/goals/{goal_id}/roadmap", resource=f"goal {goal_id}")

    async def update_milestone(self, goal_id: str, milestone_id: str, status: MilestoneStatus) -> Milestone:
        payload = await self._request(
            "PUT",
            f"/goals/{goal_id}/roadmap/milestones/{milestone_id}",
            resource=f"milestone {milestone_id}",
            json={"status": status.value},
        )
        return self._parse_model(Milestone, payload, "milestone")

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        resource: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        if self._client is None:
            raise GatewayError("Quest gateway is not open; use it as an async context manager")

        _LOG.debug("%s %s", method, path)
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TransportError as exc:
            raise GatewayError(f"{method} {path} failed: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(f"Quest gateway rejected credentials ({status})", status_code=status)
        if status == 404:
            raise NotFoundError(f"Not found: {resource}", resource=resource)
        if status >= 400:
            raise GatewayError(f"{method} {path} returned HTTP {status}", status_code=status)

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(f"{method} {path} returned invalid JSON", status_code=status) from exc

    @staticmethod
    def _parse_list(adapter: TypeAdapter[list[M]], payload: Any, key: str) -> list[M]:
        if isinstance(payload, dict):
            payload = payload.get(key, [])
        if payload is None:
            return []
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            raise GatewayError(f"Malformed {key} payload: {exc}") from exc

    @staticmethod
    def _parse_model(model: type[M], payload: Any, key: str) -> M:
        if isinstance(payload, dict) and isinstance(payload.get(key), dict):
            payload = payload[key]
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise GatewayError(f"Malformed {key} payload: {exc}") from exc
