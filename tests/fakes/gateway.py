"""In-memory quest gateway fake with call spies and scripted roadmap generation."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import date

from questcore.contracts.exceptions import NotFoundError, QuestCoreError
from questcore.contracts.gateway import QuestGateway
from questcore.contracts.models import (
    CreateGoalInput,
    CreateTaskInput,
    Goal,
    Milestone,
    MilestoneStatus,
    RoadmapStatus,
    Task,
    TaskStatus,
    UpdateGoalInput,
    UpdateTaskInput,
)


def make_goal(goal_id: str, *, title: str | None = None, roadmap_status: RoadmapStatus = RoadmapStatus.NONE) -> Goal:
    return Goal(id=goal_id, title=title or f"Goal {goal_id}", roadmap_status=roadmap_status)


def make_milestones(goal_id: str, statuses: Sequence[MilestoneStatus]) -> list[Milestone]:
    return [
        Milestone(
            id=f"{goal_id}-m{index}",
            goal_id=goal_id,
            sequence=index,
            title=f"Milestone {index}",
            duration_days=7,
            status=status,
        )
        for index, status in enumerate(statuses, start=1)
    ]


def make_task(
    task_id: str,
    due_date: date,
    *,
    completed: bool = False,
    goal_id: str | None = None,
    milestone_id: str | None = None,
) -> Task:
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        due_date=due_date,
        status=TaskStatus.COMPLETED if completed else TaskStatus.PENDING,
        goal_id=goal_id,
        milestone_id=milestone_id,
    )


class FakeGateway(QuestGateway):
    """In-memory gateway with deterministic IDs, spies and failure injection.

    ``generation_script[goal_id]`` lists the roadmap statuses reported by
    successive ``get_goal`` calls; the last status repeats once the script
    runs out. ``held`` blocks a method call (keyed by ``(method, arg)``)
    until the test sets the event.
    """

    def __init__(self) -> None:
        self.goals: dict[str, Goal] = {}
        self.tasks: dict[str, Task] = {}
        self.roadmaps: dict[str, list[Milestone]] = {}
        self.generated_roadmaps: dict[str, list[Milestone]] = {}
        self.generation_script: dict[str, list[RoadmapStatus]] = {}
        self.failures: dict[str, QuestCoreError] = {}
        self.held: dict[tuple[str, str], asyncio.Event] = {}
        self.calls: list[tuple[str, object]] = []
        self.entered = False
        self._next_number = 1

    async def __aenter__(self) -> FakeGateway:
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[override]
        self.entered = False

    def calls_to(self, method: str) -> list[object]:
        return [arg for name, arg in self.calls if name == method]

    def hold(self, method: str, arg: str) -> asyncio.Event:
        event = asyncio.Event()
        self.held[(method, arg)] = event
        return event

    async def _enter_call(self, method: str, arg: object = None) -> None:
        self.calls.append((method, arg))
        event = self.held.get((method, str(arg)))
        if event is not None:
            await event.wait()
        failure = self.failures.pop(method, None)
        if failure is not None:
            raise failure

    def _new_id(self, prefix: str) -> str:
        n = self._next_number
        self._next_number += 1
        return f"{prefix}-{n}"

    # Goals

    async def list_goals(self) -> list[Goal]:
        await self._enter_call("list_goals")
        return list(self.goals.values())

    async def get_goal(self, goal_id: str) -> Goal:
        await self._enter_call("get_goal", goal_id)
        goal = self.goals.get(goal_id)
        if goal is None:
            raise NotFoundError(f"Not found: goal {goal_id}", resource=f"goal {goal_id}")
        script = self.generation_script.get(goal_id)
        if script:
            status = script.pop(0) if len(script) > 1 else script[0]
            if status == RoadmapStatus.READY and goal_id in self.generated_roadmaps:
                self.roadmaps[goal_id] = self.generated_roadmaps.pop(goal_id)
            goal = goal.model_copy(update={"roadmap_status": status})
            self.goals[goal_id] = goal
        return goal

    async def create_goal(self, input: CreateGoalInput) -> Goal:
        await self._enter_call("create_goal", input)
        goal = Goal(
            id=self._new_id("goal"),
            title=input.title,
            description=input.description,
            category=input.category,
            target_date=input.target_date,
        )
        self.goals[goal.id] = goal
        return goal

    async def update_goal(self, goal_id: str, input: UpdateGoalInput) -> Goal:
        await self._enter_call("update_goal", goal_id)
        goal = self.goals.get(goal_id)
        if goal is None:
            raise NotFoundError(f"Not found: goal {goal_id}", resource=f"goal {goal_id}")
        updated = goal.model_copy(update=input.model_dump(exclude_none=True))
        self.goals[goal_id] = updated
        return updated

    async def delete_goal(self, goal_id: str) -> None:
        await self._enter_call("delete_goal", goal_id)
        if self.goals.pop(goal_id, None) is None:
            raise NotFoundError(f"Not found: goal {goal_id}", resource=f"goal {goal_id}")
        self.roadmaps.pop(goal_id, None)

    # Tasks

    async def list_tasks(self, day: date) -> list[Task]:
        await self._enter_call("list_tasks", day.isoformat())
        return [task for task in self.tasks.values() if task.due_date == day]

    async def create_task(self, input: CreateTaskInput) -> Task:
        await self._enter_call("create_task", input)
        task = Task(
            id=self._new_id("task"),
            title=input.title,
            description=input.description,
            due_date=input.due_date,
            priority=input.priority,
            goal_id=input.goal_id,
            milestone_id=input.milestone_id,
        )
        self.tasks[task.id] = task
        return task

    async def update_task(self, task_id: str, input: UpdateTaskInput) -> Task:
        await self._enter_call("update_task", task_id)
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Not found: task {task_id}", resource=f"task {task_id}")
        updated = task.model_copy(update=input.model_dump(exclude_none=True))
        self.tasks[task_id] = updated
        return updated

    async def delete_task(self, task_id: str) -> None:
        await self._enter_call("delete_task", task_id)
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError(f"Not found: task {task_id}", resource=f"task {task_id}")

    # Roadmaps

    async def get_roadmap(self, goal_id: str) -> list[Milestone]:
        await self._enter_call("get_roadmap", goal_id)
        return list(self.roadmaps.get(goal_id, []))

    async def request_roadmap_generation(self, goal_id: str) -> None:
        await self._enter_call("request_roadmap_generation", goal_id)
        goal = self.goals.get(goal_id)
        if goal is None:
            raise NotFoundError(f"Not found: goal {goal_id}", resource=f"goal {goal_id}")
        self.goals[goal_id] = goal.model_copy(update={"roadmap_status": RoadmapStatus.GENERATING})

    async def update_milestone(self, goal_id: str, milestone_id: str, status: MilestoneStatus) -> Milestone:
        await self._enter_call("update_milestone", milestone_id)
        milestones = self.roadmaps.get(goal_id, [])
        for index, milestone in enumerate(milestones):
            if milestone.id == milestone_id:
                updated = milestone.model_copy(update={"status": status})
                milestones[index] = updated
                return updated
        raise NotFoundError(f"Not found: milestone {milestone_id}", resource=f"milestone {milestone_id}")
