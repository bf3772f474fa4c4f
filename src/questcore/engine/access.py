"""Progressive access to tasks scheduled beyond today."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from questcore.contracts.models import Task, TaskStatus
from questcore.contracts.state import AvailableTasks, TaskAccessState

_LOG = logging.getLogger(__name__)

FUTURE_ACCESS_THRESHOLD = 0.8


def completion_rate(tasks: Sequence[Task]) -> float:
    """Share of *tasks* completed; an empty day counts as 0, not 100%."""
    if not tasks:
        return 0.0
    completed = sum(1 for task in tasks if task.status == TaskStatus.COMPLETED)
    return completed / len(tasks)


def future_unlocked(rate: float) -> bool:
    return rate >= FUTURE_ACCESS_THRESHOLD


class TaskAccessController:
    """Gates future tasks behind today's completion rate.

    The gate is pull-based: :meth:`check_access_rules` must be called after
    any change to today's tasks for ``can_access_future`` to reflect it.
    """

    def __init__(self) -> None:
        self._state = TaskAccessState()

    @property
    def state(self) -> TaskAccessState:
        return self._state

    @property
    def today_tasks(self) -> list[Task]:
        return list(self._state.today_tasks)

    def set_today_tasks(self, tasks: Sequence[Task]) -> None:
        self._state = self._state.model_copy(update={"today_tasks": list(tasks)})

    def set_future_tasks(self, tasks: Sequence[Task]) -> None:
        self._state = self._state.model_copy(update={"future_tasks": list(tasks)})

    def upsert_task(self, task: Task, *, today: bool) -> None:
        """Insert or replace *task* in the today or future set."""
        today_tasks = [t for t in self._state.today_tasks if t.id != task.id]
        future_tasks = [t for t in self._state.future_tasks if t.id != task.id]
        target = today_tasks if today else future_tasks
        existing = [t.id for t in (self._state.today_tasks if today else self._state.future_tasks)]
        if task.id in existing:
            target.insert(existing.index(task.id), task)
        else:
            target.append(task)
        self._state = self._state.model_copy(update={"today_tasks": today_tasks, "future_tasks": future_tasks})

    def remove_task(self, task_id: str) -> None:
        self._state = self._state.model_copy(
            update={
                "today_tasks": [t for t in self._state.today_tasks if t.id != task_id],
                "future_tasks": [t for t in self._state.future_tasks if t.id != task_id],
            }
        )

    def check_access_rules(self) -> bool:
        rate = completion_rate(self._state.today_tasks)
        can_access = future_unlocked(rate)
        if can_access != self._state.can_access_future:
            _LOG.debug("Future task access %s (completion rate %.2f)", "unlocked" if can_access else "locked", rate)
        self._state = self._state.model_copy(update={"can_access_future": can_access})
        return can_access

    def available_tasks(self) -> AvailableTasks:
        show_future = self._state.can_access_future
        return AvailableTasks(
            today=list(self._state.today_tasks),
            future=list(self._state.future_tasks) if show_future else [],
            show_future=show_future,
        )

    def reset(self) -> None:
        self._state = TaskAccessState()
