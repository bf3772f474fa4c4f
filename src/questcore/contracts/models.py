"""Goal, milestone and task value types.

Models are frozen and carry no back-references: ownership is encoded with
identifier fields only, so snapshots stay flat and cycle-free. Wire and
snapshot JSON use the backend's camelCase names; Python code constructs
models by field name.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class GoalStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class RoadmapStatus(StrEnum):
    NONE = "none"
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


class MilestoneStatus(StrEnum):
    LOCKED = "locked"
    ACTIVE = "active"
    COMPLETED = "completed"


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Goal(BaseModel):
    """Long-term objective ("epic quest") owned by the user."""

    model_config = _WIRE_CONFIG

    id: str = Field(alias="questId")
    title: str
    description: str = ""
    category: str | None = None
    target_date: date | None = None
    status: GoalStatus = GoalStatus.ACTIVE
    roadmap_status: RoadmapStatus = RoadmapStatus.NONE
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Milestone(BaseModel):
    """One step of a goal's roadmap."""

    model_config = _WIRE_CONFIG

    id: str = Field(alias="milestoneId")
    goal_id: str = Field(alias="epicQuestId")
    sequence: int
    title: str
    description: str = ""
    duration_days: int = Field(default=0, alias="durationInDays")
    status: MilestoneStatus = MilestoneStatus.LOCKED
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Task(BaseModel):
    """Short-lived actionable item ("daily quest")."""

    model_config = _WIRE_CONFIG

    id: str = Field(alias="questId")
    title: str
    description: str = ""
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    goal_id: str | None = Field(default=None, alias="epicQuestId")
    milestone_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ------------------------------------------------------------------
# Write inputs
# ------------------------------------------------------------------


class _WriteInput(BaseModel):
    model_config = _WIRE_CONFIG

    def payload(self) -> dict[str, Any]:
        """Wire body for the gateway, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def problems(self) -> list[str]:
        return []


def _blank_title_problems(title: str | None, *, required: bool) -> list[str]:
    if title is None:
        return ["title is required"] if required else []
    if not title.strip():
        return ["title must not be empty"]
    return []


class CreateGoalInput(_WriteInput):
    title: str
    description: str = ""
    category: str | None = None
    target_date: date | None = None

    def problems(self) -> list[str]:
        return _blank_title_problems(self.title, required=True)


class UpdateGoalInput(_WriteInput):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    status: GoalStatus | None = None
    target_date: date | None = None

    def problems(self) -> list[str]:
        errors = _blank_title_problems(self.title, required=False)
        if not self.payload():
            errors.append("update must change at least one field")
        return errors


class CreateTaskInput(_WriteInput):
    title: str
    description: str = ""
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    goal_id: str | None = Field(default=None, alias="epicQuestId")
    milestone_id: str | None = None

    def problems(self) -> list[str]:
        return _blank_title_problems(self.title, required=True)


class UpdateTaskInput(_WriteInput):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None

    def problems(self) -> list[str]:
        errors = _blank_title_problems(self.title, required=False)
        if not self.payload():
            errors.append("update must change at least one field")
        return errors
