"""Contract types shared across questcore layers."""

from questcore.contracts.config import QuestCoreConfig
from questcore.contracts.events import EntityKind, QuestsModified
from questcore.contracts.exceptions import (
    AuthenticationError,
    ConfigError,
    GatewayError,
    GenerationError,
    GenerationFailedError,
    GenerationTimeoutError,
    NotFoundError,
    PersistenceError,
    ProgressionError,
    QuestCoreError,
    QuestValidationError,
    RoadmapIntegrityError,
)
from questcore.contracts.gateway import QuestGateway
from questcore.contracts.models import (
    CreateGoalInput,
    CreateTaskInput,
    Goal,
    GoalStatus,
    Milestone,
    MilestoneStatus,
    RoadmapStatus,
    Task,
    TaskPriority,
    TaskStatus,
    UpdateGoalInput,
    UpdateTaskInput,
)
from questcore.contracts.state import (
    ActiveRoadmap,
    AvailableTasks,
    RoadmapCacheEntry,
    StoreSnapshot,
    TaskAccessState,
)

__all__ = [
    "ActiveRoadmap",
    "AuthenticationError",
    "AvailableTasks",
    "ConfigError",
    "CreateGoalInput",
    "CreateTaskInput",
    "EntityKind",
    "GatewayError",
    "GenerationError",
    "GenerationFailedError",
    "GenerationTimeoutError",
    "Goal",
    "GoalStatus",
    "Milestone",
    "MilestoneStatus",
    "NotFoundError",
    "PersistenceError",
    "ProgressionError",
    "QuestCoreConfig",
    "QuestCoreError",
    "QuestGateway",
    "QuestValidationError",
    "QuestsModified",
    "RoadmapCacheEntry",
    "RoadmapIntegrityError",
    "RoadmapStatus",
    "StoreSnapshot",
    "Task",
    "TaskAccessState",
    "TaskPriority",
    "TaskStatus",
    "UpdateGoalInput",
    "UpdateTaskInput",
]
