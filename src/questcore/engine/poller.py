"""Bounded polling of asynchronous roadmap generation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from questcore.contracts.exceptions import (
    GenerationFailedError,
    GenerationTimeoutError,
    QuestCoreError,
)
from questcore.contracts.gateway import QuestGateway
from questcore.contracts.models import Goal, Milestone, RoadmapStatus
from questcore.engine.progress import NullPollProgress, PollProgress
from questcore.engine.progression import ProgressionEngine

_LOG = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_MAX_ATTEMPTS = 30


class PollOutcomeKind(StrEnum):
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PollOutcome:
    goal_id: str
    kind: PollOutcomeKind
    attempts: int
    goal: Goal | None = None
    milestones: list[Milestone] = field(default_factory=list)
    error: QuestCoreError | None = None


OutcomeHandler = Callable[[PollOutcome], Awaitable[None]]


class PollHandle:
    """Cancellable handle on one goal's poll loop."""

    def __init__(self, goal_id: str) -> None:
        self.goal_id = goal_id
        self.attempts = 0
        self._task: asyncio.Task[PollOutcome] | None = None

    def _bind(self, task: asyncio.Task[PollOutcome]) -> None:
        self._task = task

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            _LOG.info("Cancelling roadmap poll for goal %s", self.goal_id)
            self._task.cancel()

    async def wait(self) -> PollOutcome:
        """Wait for the loop to terminate; cancelling the waiter leaves the loop running."""
        if self._task is None:
            raise RuntimeError(f"poll for goal {self.goal_id} was never started")
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
            return PollOutcome(goal_id=self.goal_id, kind=PollOutcomeKind.CANCELLED, attempts=self.attempts)


class GenerationPoller:
    """Polls goal status until its roadmap leaves ``generating``.

    At most one loop runs per goal; starting a second one returns the handle
    of the loop already in flight. A loop stops as soon as it reaches a
    terminal state and never sleeps after its last attempt.
    """

    def __init__(
        self,
        gateway: QuestGateway,
        engine: ProgressionEngine,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        progress: PollProgress | None = None,
        on_outcome: OutcomeHandler | None = None,
    ) -> None:
        self._gateway = gateway
        self._engine = engine
        self._interval = interval
        self._max_attempts = max_attempts
        self._progress: PollProgress = progress or NullPollProgress()
        self._on_outcome = on_outcome
        self._handles: dict[str, PollHandle] = {}

    def is_polling(self, goal_id: str) -> bool:
        handle = self._handles.get(goal_id)
        return handle is not None and not handle.done()

    def handle_for(self, goal_id: str) -> PollHandle | None:
        return self._handles.get(goal_id)

    def start(self, goal_id: str, *, max_attempts: int | None = None) -> PollHandle:
        existing = self._handles.get(goal_id)
        if existing is not None and not existing.done():
            _LOG.debug("Roadmap poll already running for goal %s", goal_id)
            return existing

        handle = PollHandle(goal_id)
        budget = max_attempts if max_attempts is not None else self._max_attempts
        task = asyncio.create_task(self._run(handle, budget), name=f"roadmap-poll:{goal_id}")
        handle._bind(task)
        self._handles[goal_id] = handle
        return handle

    def cancel_all(self) -> None:
        for handle in list(self._handles.values()):
            handle.cancel()

    async def aclose(self) -> None:
        """Cancel every running loop and wait for them to unwind."""
        handles = list(self._handles.values())
        for handle in handles:
            handle.cancel()
        for handle in handles:
            await handle.wait()

    async def _run(self, handle: PollHandle, max_attempts: int) -> PollOutcome:
        self._progress.poll_start(handle.goal_id, max_attempts)
        try:
            outcome = await self._poll(handle, max_attempts)
            if self._on_outcome is not None:
                await self._on_outcome(outcome)
        except asyncio.CancelledError:
            self._progress.poll_done(handle.goal_id, PollOutcomeKind.CANCELLED)
            raise
        finally:
            if self._handles.get(handle.goal_id) is handle:
                del self._handles[handle.goal_id]
        self._progress.poll_done(handle.goal_id, outcome.kind)
        return outcome

    async def _poll(self, handle: PollHandle, max_attempts: int) -> PollOutcome:
        goal_id = handle.goal_id
        while handle.attempts < max_attempts:
            handle.attempts += 1
            try:
                goal = await self._gateway.get_goal(goal_id)
            except QuestCoreError as exc:
                _LOG.warning("Error checking roadmap status for goal %s: %s", goal_id, exc)
                return PollOutcome(goal_id=goal_id, kind=PollOutcomeKind.ERROR, attempts=handle.attempts, error=exc)

            self._progress.attempt(goal_id, handle.attempts, goal.roadmap_status)
            _LOG.debug("Poll %d/%d for goal %s: %s", handle.attempts, max_attempts, goal_id, goal.roadmap_status)

            if goal.roadmap_status == RoadmapStatus.READY:
                try:
                    milestones = await self._engine.fetch_roadmap(goal_id, goal=goal, force_refresh=True)
                except QuestCoreError as exc:
                    return PollOutcome(
                        goal_id=goal_id, kind=PollOutcomeKind.ERROR, attempts=handle.attempts, goal=goal, error=exc
                    )
                return PollOutcome(
                    goal_id=goal_id,
                    kind=PollOutcomeKind.READY,
                    attempts=handle.attempts,
                    goal=goal,
                    milestones=milestones,
                )

            if goal.roadmap_status == RoadmapStatus.ERROR:
                return PollOutcome(
                    goal_id=goal_id,
                    kind=PollOutcomeKind.FAILED,
                    attempts=handle.attempts,
                    goal=goal,
                    error=GenerationFailedError("Roadmap generation failed", goal_id=goal_id),
                )

            if handle.attempts < max_attempts:
                await asyncio.sleep(self._interval)

        _LOG.warning("Roadmap generation for goal %s timed out after %d polls", goal_id, handle.attempts)
        return PollOutcome(
            goal_id=goal_id,
            kind=PollOutcomeKind.TIMED_OUT,
            attempts=handle.attempts,
            error=GenerationTimeoutError(
                "Roadmap generation timed out", goal_id=goal_id, attempts=handle.attempts
            ),
        )
