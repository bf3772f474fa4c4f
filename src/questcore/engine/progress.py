"""Progress reporting protocol for roadmap generation polling.

This is engine-level instrumentation, not a gateway contract. The poller
emits lifecycle events; consumers (e.g. the CLI's Rich spinner) implement
``PollProgress`` to render feedback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from questcore.contracts.models import RoadmapStatus


class PollProgress(ABC):
    """Observer interface for generation poll loops."""

    @abstractmethod
    def poll_start(self, goal_id: str, max_attempts: int) -> None:
        """A poll loop for *goal_id* is starting."""
        ...  # pragma: no cover

    @abstractmethod
    def attempt(self, goal_id: str, attempt: int, status: RoadmapStatus) -> None:
        """Poll number *attempt* observed *status*."""
        ...  # pragma: no cover

    @abstractmethod
    def poll_done(self, goal_id: str, outcome: str) -> None:
        """The loop for *goal_id* terminated with *outcome* (a ``PollOutcomeKind`` value)."""
        ...  # pragma: no cover


class NullPollProgress(PollProgress):
    """No-op implementation used when no progress display is requested."""

    def poll_start(self, goal_id: str, max_attempts: int) -> None:
        pass

    def attempt(self, goal_id: str, attempt: int, status: RoadmapStatus) -> None:
        pass

    def poll_done(self, goal_id: str, outcome: str) -> None:
        pass
