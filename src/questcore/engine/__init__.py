"""Engine module exports."""

from questcore.engine.access import FUTURE_ACCESS_THRESHOLD, TaskAccessController, completion_rate
from questcore.engine.milestones import MilestoneAdvance
from questcore.engine.poller import GenerationPoller, PollHandle, PollOutcome, PollOutcomeKind
from questcore.engine.progress import NullPollProgress, PollProgress
from questcore.engine.progression import ProgressionEngine

__all__ = [
    "FUTURE_ACCESS_THRESHOLD",
    "GenerationPoller",
    "MilestoneAdvance",
    "NullPollProgress",
    "PollHandle",
    "PollOutcome",
    "PollOutcomeKind",
    "PollProgress",
    "ProgressionEngine",
    "TaskAccessController",
    "completion_rate",
]
