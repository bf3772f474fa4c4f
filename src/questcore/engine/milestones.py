"""Pure helpers for the milestone state machine (locked -> active -> completed)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from questcore.contracts.exceptions import ProgressionError, RoadmapIntegrityError
from questcore.contracts.models import Milestone, MilestoneStatus


@dataclass(frozen=True)
class MilestoneAdvance:
    """Result of completing a milestone."""

    completed: Milestone
    activated: Milestone | None
    milestones: list[Milestone]

    @property
    def roadmap_finished(self) -> bool:
        """No locked milestone was left to activate."""
        return self.activated is None


def validate_roadmap(goal_id: str, milestones: Iterable[Milestone]) -> list[Milestone]:
    """Return *milestones* sorted by sequence, rejecting inconsistent roadmaps.

    Raises:
        RoadmapIntegrityError: On duplicate sequences, foreign milestones, more
            than one active milestone, or completions out of sequence order.
    """
    ordered = sorted(milestones, key=lambda milestone: milestone.sequence)
    errors: list[str] = []

    seen: set[int] = set()
    for milestone in ordered:
        if milestone.goal_id != goal_id:
            errors.append(f"milestone {milestone.id} belongs to goal {milestone.goal_id}, not {goal_id}")
        if milestone.sequence in seen:
            errors.append(f"duplicate sequence {milestone.sequence}")
        seen.add(milestone.sequence)

    active = [milestone.id for milestone in ordered if milestone.status == MilestoneStatus.ACTIVE]
    if len(active) > 1:
        errors.append(f"more than one active milestone: {', '.join(active)}")

    incomplete_seen = False
    for milestone in ordered:
        if milestone.status != MilestoneStatus.COMPLETED:
            incomplete_seen = True
        elif incomplete_seen:
            errors.append(f"milestone {milestone.id} completed out of sequence order")

    if errors:
        raise RoadmapIntegrityError(f"Inconsistent roadmap for goal {goal_id}: " + "; ".join(errors))
    return ordered


def current_milestone(milestones: Sequence[Milestone]) -> Milestone | None:
    for milestone in milestones:
        if milestone.status == MilestoneStatus.ACTIVE:
            return milestone
    return None


def find_milestone(milestones: Sequence[Milestone], milestone_id: str) -> Milestone | None:
    for milestone in milestones:
        if milestone.id == milestone_id:
            return milestone
    return None


def require_completable(milestones: Sequence[Milestone], milestone_id: str) -> Milestone:
    milestone = find_milestone(milestones, milestone_id)
    if milestone is None:
        raise ProgressionError(f"Milestone not found in roadmap: {milestone_id}")
    if milestone.status == MilestoneStatus.LOCKED:
        raise ProgressionError(f"Milestone {milestone_id} is locked and cannot be completed")
    if milestone.status == MilestoneStatus.COMPLETED:
        raise ProgressionError(f"Milestone {milestone_id} is already completed")
    return milestone


def next_locked(milestones: Sequence[Milestone]) -> Milestone | None:
    for milestone in sorted(milestones, key=lambda m: m.sequence):
        if milestone.status == MilestoneStatus.LOCKED:
            return milestone
    return None


def advance_milestones(milestones: Sequence[Milestone], milestone_id: str) -> MilestoneAdvance:
    """Complete the active milestone *milestone_id* and unlock the next locked one."""
    target = require_completable(milestones, milestone_id)
    completed = target.model_copy(update={"status": MilestoneStatus.COMPLETED})
    remaining = [completed if m.id == target.id else m for m in milestones]

    upcoming = next_locked(remaining)
    activated = upcoming.model_copy(update={"status": MilestoneStatus.ACTIVE}) if upcoming is not None else None
    if activated is not None:
        remaining = [activated if m.id == activated.id else m for m in remaining]

    return MilestoneAdvance(
        completed=completed,
        activated=activated,
        milestones=sorted(remaining, key=lambda m: m.sequence),
    )


def replace_milestone(milestones: Sequence[Milestone], updated: Milestone) -> list[Milestone]:
    return [updated if milestone.id == updated.id else milestone for milestone in milestones]
