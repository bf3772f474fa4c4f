"""Public API surface for questcore."""

__version__ = "0.4.0"

from questcore.auth import TokenResolver, create_token_resolver
from questcore.cache import CACHE_EXPIRY, TTLCache
from questcore.config import load_config
from questcore.contracts import (
    ActiveRoadmap,
    AuthenticationError,
    AvailableTasks,
    ConfigError,
    CreateGoalInput,
    CreateTaskInput,
    EntityKind,
    GatewayError,
    GenerationError,
    GenerationFailedError,
    GenerationTimeoutError,
    Goal,
    GoalStatus,
    Milestone,
    MilestoneStatus,
    NotFoundError,
    PersistenceError,
    ProgressionError,
    QuestCoreConfig,
    QuestCoreError,
    QuestGateway,
    QuestsModified,
    QuestValidationError,
    RoadmapCacheEntry,
    RoadmapIntegrityError,
    RoadmapStatus,
    StoreSnapshot,
    Task,
    TaskAccessState,
    TaskPriority,
    TaskStatus,
    UpdateGoalInput,
    UpdateTaskInput,
)
from questcore.engine import (
    FUTURE_ACCESS_THRESHOLD,
    MilestoneAdvance,
    NullPollProgress,
    PollHandle,
    PollOutcome,
    PollOutcomeKind,
    PollProgress,
    completion_rate,
)
from questcore.events import EventBus, from_structured, infer_from_text
from questcore.gateway import HttpQuestGateway
from questcore.persistence import load_snapshot, persist_snapshot
from questcore.store import QuestStore

__all__ = [
    "CACHE_EXPIRY",
    "FUTURE_ACCESS_THRESHOLD",
    "ActiveRoadmap",
    "AuthenticationError",
    "AvailableTasks",
    "ConfigError",
    "CreateGoalInput",
    "CreateTaskInput",
    "EntityKind",
    "EventBus",
    "GatewayError",
    "GenerationError",
    "GenerationFailedError",
    "GenerationTimeoutError",
    "Goal",
    "GoalStatus",
    "HttpQuestGateway",
    "Milestone",
    "MilestoneAdvance",
    "MilestoneStatus",
    "NotFoundError",
    "NullPollProgress",
    "PersistenceError",
    "PollHandle",
    "PollOutcome",
    "PollOutcomeKind",
    "PollProgress",
    "ProgressionError",
    "QuestCoreConfig",
    "QuestCoreError",
    "QuestGateway",
    "QuestStore",
    "QuestValidationError",
    "QuestsModified",
    "RoadmapCacheEntry",
    "RoadmapIntegrityError",
    "RoadmapStatus",
    "StoreSnapshot",
    "TTLCache",
    "Task",
    "TaskAccessState",
    "TaskPriority",
    "TaskStatus",
    "TokenResolver",
    "UpdateGoalInput",
    "UpdateTaskInput",
    "__version__",
    "completion_rate",
    "create_token_resolver",
    "from_structured",
    "infer_from_text",
    "load_config",
    "load_snapshot",
    "persist_snapshot",
]
