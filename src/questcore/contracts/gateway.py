"""Remote quest gateway contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from types import TracebackType

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


class QuestGateway(ABC):
    """Authoritative backend for goals, tasks and roadmaps.

    Every method is a suspension point. Roadmap generation is fire-and-forget:
    :meth:`request_roadmap_generation` only schedules the work and callers
    poll :meth:`get_goal` for the roadmap status afterwards.
    """

    @abstractmethod
    async def __aenter__(self) -> QuestGateway: ...  # pragma: no cover

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...  # pragma: no cover

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_goals(self) -> list[Goal]: ...  # pragma: no cover

    @abstractmethod
    async def get_goal(self, goal_id: str) -> Goal:
        """Fetch one goal.

        Raises:
            NotFoundError: If the goal does not exist.
        """

    @abstractmethod
    async def create_goal(self, input: CreateGoalInput) -> Goal: ...  # pragma: no cover

    @abstractmethod
    async def update_goal(self, goal_id: str, input: UpdateGoalInput) -> Goal: ...  # pragma: no cover

    @abstractmethod
    async def delete_goal(self, goal_id: str) -> None: ...  # pragma: no cover

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_tasks(self, day: date) -> list[Task]: ...  # pragma: no cover

    @abstractmethod
    async def create_task(self, input: CreateTaskInput) -> Task: ...  # pragma: no cover

    @abstractmethod
    async def update_task(self, task_id: str, input: UpdateTaskInput) -> Task: ...  # pragma: no cover

    @abstractmethod
    async def delete_task(self, task_id: str) -> None: ...  # pragma: no cover

    # ------------------------------------------------------------------
    # Roadmaps
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_roadmap(self, goal_id: str) -> list[Milestone]: ...  # pragma: no cover

    @abstractmethod
    async def request_roadmap_generation(self, goal_id: str) -> None: ...  # pragma: no cover

    @abstractmethod
    async def update_milestone(
        self, goal_id: str, milestone_id: str, status: MilestoneStatus
    ) -> Milestone: ...  # pragma: no cover
