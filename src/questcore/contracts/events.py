"""Cross-subsystem event contracts."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class EntityKind(StrEnum):
    GOAL = "goal"
    TASK = "task"
    MILESTONE = "milestone"


class QuestsModified(BaseModel):
    """Another subsystem (e.g. the AI chat) changed quest entities server-side.

    ``confident`` is false when the signal was inferred from free text rather
    than reported explicitly by the backend.
    """

    model_config = {"frozen": True}

    source: str
    entities: frozenset[EntityKind] = Field(default_factory=frozenset)
    confident: bool = True
