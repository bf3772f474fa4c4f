"""Public store interface composing cache, progression, access and polling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from types import TracebackType
from typing import Any

from questcore.auth import create_token_resolver
from questcore.cache.ttl_cache import (
    ROADMAP_PREFIX,
    Clock,
    TTLCache,
    goals_scope,
    roadmap_scope,
    tasks_scope,
)
from questcore.contracts.config import QuestCoreConfig
from questcore.contracts.events import EntityKind, QuestsModified
from questcore.contracts.exceptions import QuestCoreError, QuestValidationError
from questcore.contracts.gateway import QuestGateway
from questcore.contracts.models import (
    CreateGoalInput,
    CreateTaskInput,
    Goal,
    Milestone,
    RoadmapStatus,
    Task,
    TaskStatus,
    UpdateGoalInput,
    UpdateTaskInput,
)
from questcore.contracts.state import ActiveRoadmap, AvailableTasks, RoadmapCacheEntry, StoreSnapshot, TaskAccessState
from questcore.engine.access import TaskAccessController
from questcore.engine.milestones import MilestoneAdvance
from questcore.engine.poller import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    GenerationPoller,
    PollHandle,
    PollOutcome,
    PollOutcomeKind,
)
from questcore.engine.progress import PollProgress
from questcore.engine.progression import ProgressionEngine
from questcore.events.bus import EventBus
from questcore.gateway.http import HttpQuestGateway
from questcore.persistence import load_snapshot, persist_snapshot

_LOG = logging.getLogger(__name__)

_TASKS_PREFIX = "tasks:"


def _require_valid(input: CreateGoalInput | UpdateGoalInput | CreateTaskInput | UpdateTaskInput) -> None:
    problems = input.problems()
    if problems:
        raise QuestValidationError(problems)


class QuestStore:
    """Read selectors and mutating actions over goals, roadmaps and tasks.

    Every mutation is committed locally only after the gateway confirms it.
    Errors from actions land in the single :attr:`error` slot; single-entity
    actions re-raise them, compound refreshes only record and log.
    """

    def __init__(
        self,
        gateway: QuestGateway,
        *,
        clock: Clock | None = None,
        progress: PollProgress | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_days_ahead: int = 1,
    ) -> None:
        self._gateway = gateway
        self._cache: TTLCache[Any] = TTLCache(clock=clock)
        self._engine = ProgressionEngine(gateway, self._cache)
        self._access = TaskAccessController()
        self._poller = GenerationPoller(
            gateway,
            self._engine,
            interval=poll_interval,
            max_attempts=max_poll_attempts,
            progress=progress,
            on_outcome=self._on_poll_outcome,
        )
        self._max_days_ahead = max_days_ahead
        self._goals: list[Goal] = []
        self._last_fetch: datetime | None = None
        self._error: QuestCoreError | None = None
        self._pending = 0
        self._refreshing_today = False
        self._refreshing_quests = False
        self._pending_triggers: dict[str, asyncio.Future[PollHandle]] = {}

    @classmethod
    async def from_config(
        cls,
        config: QuestCoreConfig,
        *,
        clock: Clock | None = None,
        progress: PollProgress | None = None,
    ) -> QuestStore:
        token = await create_token_resolver(config).resolve()
        gateway = HttpQuestGateway(
            base_url=config.base_url,
            token=token,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )
        return cls(
            gateway,
            clock=clock,
            progress=progress,
            poll_interval=config.poll_interval,
            max_poll_attempts=config.max_poll_attempts,
            max_days_ahead=config.max_days_ahead,
        )

    async def __aenter__(self) -> QuestStore:
        await self._gateway.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            await self.aclose()
        finally:
            await self._gateway.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        """Cancel in-flight generation polls."""
        await self._poller.aclose()

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    @property
    def goals(self) -> list[Goal]:
        return list(self._goals)

    @property
    def tasks(self) -> list[Task]:
        return self._access.today_tasks

    @property
    def active_roadmap(self) -> ActiveRoadmap | None:
        return self._engine.active_roadmap

    @property
    def active_milestone(self) -> Milestone | None:
        return self._engine.active_milestone

    @property
    def task_access(self) -> TaskAccessState:
        return self._access.state

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing_today or self._refreshing_quests

    @property
    def error(self) -> QuestCoreError | None:
        return self._error

    @property
    def last_fetch(self) -> datetime | None:
        return self._last_fetch

    @property
    def today(self) -> date:
        return self._cache.now().date()

    def roadmap_entry(self, goal_id: str) -> RoadmapCacheEntry | None:
        return self._engine.roadmap_entry(goal_id)

    def is_generating(self, goal_id: str) -> bool:
        return goal_id in self._pending_triggers or self._poller.is_polling(goal_id)

    def find_goal(self, goal_id: str) -> Goal | None:
        for goal in self._goals:
            if goal.id == goal_id:
                return goal
        return None

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def fetch_goals(self, *, force_refresh: bool = False) -> list[Goal]:
        """Resolve the goal list, then auto-select a ready roadmap if none is selected."""
        key = goals_scope()
        with self._action("fetch goals"):
            cached = None if force_refresh else self._cache.get_fresh(key)
            if cached is not None:
                _LOG.debug("Goals cache hit")
                goals = list(cached.value)
            else:
                generation = self._cache.generation(key)
                goals = await self._gateway.list_goals()
                fetched_at = self._cache.now()
                if self._cache.put(key, goals, fetched_at, generation=generation):
                    self._last_fetch = fetched_at
                else:
                    _LOG.warning("Discarding goal list: goals changed while it was in flight")
                    goals = list(self._goals)
            self._goals = list(goals)
        await self._auto_select()
        return list(self._goals)

    async def get_goal(self, goal_id: str) -> Goal:
        with self._action(f"get goal {goal_id}"):
            return await self._gateway.get_goal(goal_id)

    async def create_goal(self, input: CreateGoalInput) -> Goal:
        with self._action("create goal"):
            _require_valid(input)
            goal = await self._gateway.create_goal(input)
        self._commit_goals([*self._goals, goal])
        return goal

    async def update_goal(self, goal_id: str, input: UpdateGoalInput) -> Goal:
        with self._action(f"update goal {goal_id}"):
            _require_valid(input)
            goal = await self._gateway.update_goal(goal_id, input)
        self._replace_goal(goal)
        return goal

    async def delete_goal(self, goal_id: str) -> None:
        with self._action(f"delete goal {goal_id}"):
            await self._gateway.delete_goal(goal_id)
        handle = self._poller.handle_for(goal_id)
        if handle is not None:
            handle.cancel()
        self._commit_goals([goal for goal in self._goals if goal.id != goal_id])
        self._engine.forget_goal(goal_id)

    def _commit_goals(self, goals: list[Goal]) -> None:
        self._goals = goals
        self._rewrite_scope(goals_scope(), lambda _: list(goals))

    def _replace_goal(self, goal: Goal) -> None:
        goals = [goal if existing.id == goal.id else existing for existing in self._goals]
        if all(existing.id != goal.id for existing in self._goals):
            goals.append(goal)
        self._commit_goals(goals)
        self._engine.refresh_goal(goal)

    async def _auto_select(self) -> None:
        if self._engine.active_roadmap is not None:
            return
        ready = next((goal for goal in self._goals if goal.roadmap_status == RoadmapStatus.READY), None)
        if ready is None:
            return
        _LOG.info("Auto-selecting roadmap for goal %s", ready.id)
        try:
            await self._engine.set_active_roadmap(ready, explicit=False)
        except QuestCoreError as exc:
            self._record_error("auto-select roadmap", exc)

    # ------------------------------------------------------------------
    # Roadmaps
    # ------------------------------------------------------------------

    async def fetch_roadmap(self, goal_id: str, *, force_refresh: bool = False) -> list[Milestone]:
        with self._action(f"fetch roadmap {goal_id}"):
            return await self._engine.fetch_roadmap(goal_id, goal=self.find_goal(goal_id), force_refresh=force_refresh)

    async def set_active_roadmap(self, goal_id: str) -> ActiveRoadmap | None:
        """Explicitly select *goal_id*; returns None if a newer selection superseded it."""
        with self._action(f"select roadmap {goal_id}"):
            goal = self.find_goal(goal_id)
            if goal is None:
                goal = await self._gateway.get_goal(goal_id)
            return await self._engine.set_active_roadmap(goal)

    async def complete_milestone(self, goal_id: str, milestone_id: str) -> MilestoneAdvance:
        with self._action(f"complete milestone {milestone_id}"):
            advance = await self._engine.complete_milestone(goal_id, milestone_id)
        # Activation generates tasks server-side.
        await self.refresh_today_data()
        return advance

    def clear_roadmap_cache(self, goal_id: str | None = None) -> None:
        if goal_id is None:
            self._cache.invalidate_matching(ROADMAP_PREFIX)
        else:
            self._cache.invalidate(roadmap_scope(goal_id))

    async def generate_roadmap(self, goal_id: str) -> PollHandle:
        """Trigger roadmap generation and start polling for its outcome.

        Calling this while a trigger or poll for *goal_id* is in flight
        returns the same handle without contacting the gateway again.
        """
        handle = self._poller.handle_for(goal_id)
        if handle is not None and not handle.done():
            _LOG.info("Roadmap generation already in progress for goal %s", goal_id)
            return handle
        trigger = self._pending_triggers.get(goal_id)
        if trigger is not None:
            _LOG.info("Roadmap generation already requested for goal %s", goal_id)
            return await asyncio.shield(trigger)

        trigger = asyncio.get_running_loop().create_future()
        self._pending_triggers[goal_id] = trigger
        try:
            with self._action(f"generate roadmap {goal_id}"):
                await self._gateway.request_roadmap_generation(goal_id)
            self._cache.invalidate(roadmap_scope(goal_id))
            goal = self.find_goal(goal_id)
            if goal is not None:
                self._replace_goal(goal.model_copy(update={"roadmap_status": RoadmapStatus.GENERATING}))
            handle = self._poller.start(goal_id)
        except asyncio.CancelledError:
            trigger.cancel()
            raise
        except Exception as exc:
            trigger.set_exception(exc)
            # Retrieved here so an unawaited trigger is not logged.
            trigger.exception()
            raise
        finally:
            del self._pending_triggers[goal_id]
        trigger.set_result(handle)
        return handle

    def poll_roadmap_generation(self, goal_id: str, *, max_attempts: int | None = None) -> PollHandle:
        return self._poller.start(goal_id, max_attempts=max_attempts)

    async def _on_poll_outcome(self, outcome: PollOutcome) -> None:
        if outcome.kind == PollOutcomeKind.READY and outcome.goal is not None:
            self._replace_goal(outcome.goal)
            if self._engine.active_roadmap is None:
                try:
                    await self._engine.set_active_roadmap(outcome.goal, explicit=False)
                except QuestCoreError as exc:
                    self._record_error("select generated roadmap", exc)
            return

        if outcome.kind == PollOutcomeKind.FAILED and outcome.goal is not None:
            self._replace_goal(outcome.goal)
        elif outcome.kind == PollOutcomeKind.TIMED_OUT:
            goal = self.find_goal(outcome.goal_id)
            if goal is not None:
                self._replace_goal(goal.model_copy(update={"roadmap_status": RoadmapStatus.ERROR}))
        if outcome.error is not None:
            self._record_error(f"roadmap generation for goal {outcome.goal_id}", outcome.error)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def fetch_tasks(self, day: date, *, force_refresh: bool = False) -> list[Task]:
        with self._action(f"fetch tasks {day.isoformat()}"):
            tasks = await self._cache.resolve(
                tasks_scope(day),
                lambda: self._gateway.list_tasks(day),
                force_refresh=force_refresh,
            )
        return list(tasks)

    async def fetch_today_tasks(self, *, force_refresh: bool = False) -> list[Task]:
        tasks = await self.fetch_tasks(self.today, force_refresh=force_refresh)
        self._access.set_today_tasks(tasks)
        return tasks

    async def fetch_future_tasks(self, *, force_refresh: bool = False) -> list[Task]:
        """Load the days after today up to the configured horizon into the future set."""
        future: list[Task] = []
        for offset in range(1, self._max_days_ahead + 1):
            future.extend(await self.fetch_tasks(self.today + timedelta(days=offset), force_refresh=force_refresh))
        self._access.set_future_tasks(future)
        return future

    async def create_task(self, input: CreateTaskInput) -> Task:
        with self._action("create task"):
            _require_valid(input)
            self._engine.validate_task_binding(input)
            task = await self._gateway.create_task(input)
        self._commit_task(task)
        return task

    async def update_task(self, task_id: str, input: UpdateTaskInput) -> Task:
        with self._action(f"update task {task_id}"):
            _require_valid(input)
            task = await self._gateway.update_task(task_id, input)
        self._commit_task(task)
        return task

    async def complete_task(self, task_id: str) -> Task:
        return await self.update_task(task_id, UpdateTaskInput(status=TaskStatus.COMPLETED))

    async def delete_task(self, task_id: str) -> None:
        with self._action(f"delete task {task_id}"):
            await self._gateway.delete_task(task_id)
        self._drop_task_everywhere(task_id)
        self._access.remove_task(task_id)
        self._access.check_access_rules()

    def _commit_task(self, task: Task) -> None:
        self._drop_task_everywhere(task.id)
        self._rewrite_scope(tasks_scope(task.due_date), lambda tasks: [*tasks, task])

        offset = (task.due_date - self.today).days
        if offset == 0:
            self._access.upsert_task(task, today=True)
        elif 1 <= offset <= self._max_days_ahead:
            self._access.upsert_task(task, today=False)
        else:
            self._access.remove_task(task.id)
        self._access.check_access_rules()

    def _drop_task_everywhere(self, task_id: str) -> None:
        for key, cached in self._cache.items(_TASKS_PREFIX):
            if any(task.id == task_id for task in cached.value):
                self._rewrite_scope(key, lambda tasks: [t for t in tasks if t.id != task_id])

    def check_task_access_rules(self) -> bool:
        return self._access.check_access_rules()

    def get_available_tasks(self) -> AvailableTasks:
        return self._access.available_tasks()

    # ------------------------------------------------------------------
    # Compound refreshes
    # ------------------------------------------------------------------

    async def refresh_today_data(self) -> bool:
        """Force-refresh today's tasks and re-evaluate future access.

        Returns:
            False when a refresh was already running and this call did nothing.
        """
        if self._refreshing_today:
            _LOG.debug("Today refresh already in progress")
            return False
        self._refreshing_today = True
        try:
            await self.fetch_today_tasks(force_refresh=True)
            self._access.check_access_rules()
            await self.fetch_future_tasks(force_refresh=True)
        except QuestCoreError as exc:
            _LOG.warning("Today refresh failed: %s", exc)
        finally:
            self._refreshing_today = False
        return True

    async def refresh_quests_data(self) -> bool:
        """Force-refresh goals, then today's data."""
        if self._refreshing_quests:
            _LOG.debug("Quests refresh already in progress")
            return False
        self._refreshing_quests = True
        try:
            try:
                await self.fetch_goals(force_refresh=True)
            except QuestCoreError as exc:
                _LOG.warning("Goals refresh failed: %s", exc)
            await self.refresh_today_data()
        finally:
            self._refreshing_quests = False
        return True

    def attach(self, bus: EventBus) -> Callable[[], None]:
        """Refresh in response to quest changes announced on *bus*."""
        return bus.subscribe(QuestsModified, self._on_quests_modified)

    async def _on_quests_modified(self, event: QuestsModified) -> None:
        _LOG.info(
            "Quests modified by %s (%s)%s",
            event.source,
            ", ".join(sorted(event.entities)),
            "" if event.confident else " [heuristic]",
        )
        if EntityKind.GOAL in event.entities:
            await self.refresh_quests_data()
        else:
            await self.refresh_today_data()

    # ------------------------------------------------------------------
    # Errors and lifecycle
    # ------------------------------------------------------------------

    def clear_error(self) -> None:
        self._error = None

    def reset_state(self) -> None:
        self._poller.cancel_all()
        self._cache.invalidate()
        self._engine.clear_selection()
        self._access.reset()
        self._goals = []
        self._last_fetch = None
        self._error = None

    @contextmanager
    def _action(self, name: str) -> Iterator[None]:
        self._pending += 1
        try:
            yield
        except QuestCoreError as exc:
            self._record_error(name, exc)
            raise
        finally:
            self._pending -= 1

    def _record_error(self, name: str, exc: QuestCoreError) -> None:
        _LOG.warning("%s failed: %s", name, exc)
        self._error = exc

    def _rewrite_scope(self, key: str, transform: Callable[[Any], Any]) -> None:
        """Apply a confirmed write to a cached scope, dropping in-flight reads of it."""
        cached = self._cache.get(key)
        self._cache.invalidate(key)
        if cached is not None:
            self._cache.put(key, transform(cached.value), cached.fetched_at)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            goals=list(self._goals),
            roadmap_cache=self._engine.roadmap_entries(),
            active_roadmap=self._engine.active_roadmap,
            last_fetch=self._last_fetch,
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Rehydrate persisted state; flags and polls start from their defaults."""
        self._goals = list(snapshot.goals)
        self._last_fetch = snapshot.last_fetch
        if snapshot.last_fetch is not None:
            self._cache.put(goals_scope(), list(snapshot.goals), snapshot.last_fetch)
        self._engine.restore(snapshot.active_roadmap, dict(snapshot.roadmap_cache))

    def save(self, path: Path) -> None:
        persist_snapshot(snapshot=self.snapshot(), path=path)

    def load(self, path: Path) -> bool:
        """Restore from *path*; returns False when no snapshot exists yet."""
        snapshot = load_snapshot(path=path)
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True
