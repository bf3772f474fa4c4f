"""Store state contracts: cache entries, selections and the persisted snapshot."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from questcore.contracts.models import Goal, Milestone, MilestoneStatus, Task

_STATE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class RoadmapCacheEntry(BaseModel):
    """Milestones fetched for one goal, with a denormalized copy of the goal."""

    model_config = _STATE_CONFIG

    milestones: list[Milestone] = Field(default_factory=list)
    fetched_at: datetime
    goal: Goal | None = None


class ActiveRoadmap(BaseModel):
    """The single goal whose roadmap the user is currently following."""

    model_config = _STATE_CONFIG

    goal_id: str
    goal: Goal | None = None
    milestones: list[Milestone] = Field(default_factory=list)
    roadmap_unavailable: bool = Field(default=False, exclude=True)
    """Set when the milestones could not be fetched for this selection."""

    @property
    def active_milestone(self) -> Milestone | None:
        for milestone in self.milestones:
            if milestone.status == MilestoneStatus.ACTIVE:
                return milestone
        return None


class TaskAccessState(BaseModel):
    model_config = _STATE_CONFIG

    today_tasks: list[Task] = Field(default_factory=list)
    future_tasks: list[Task] = Field(default_factory=list)
    can_access_future: bool = False


class AvailableTasks(BaseModel):
    """Tasks a caller may render right now.

    ``future`` is empty whenever ``show_future`` is false, so callers can tell
    a locked preview apart from "no future tasks exist".
    """

    model_config = _STATE_CONFIG

    today: list[Task] = Field(default_factory=list)
    future: list[Task] = Field(default_factory=list)
    show_future: bool = False


class StoreSnapshot(BaseModel):
    """Cross-session state. Flags and poll bookkeeping are never included."""

    model_config = _STATE_CONFIG

    goals: list[Goal] = Field(default_factory=list)
    roadmap_cache: dict[str, RoadmapCacheEntry] = Field(default_factory=dict)
    active_roadmap: ActiveRoadmap | None = None
    last_fetch: datetime | None = None
