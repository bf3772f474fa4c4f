"""Active roadmap selection and milestone progression."""

from __future__ import annotations

import logging
from typing import Any

from questcore.cache.ttl_cache import ROADMAP_PREFIX, TTLCache, goal_id_from_scope, roadmap_scope
from questcore.contracts.exceptions import QuestCoreError, QuestValidationError
from questcore.contracts.gateway import QuestGateway
from questcore.contracts.models import CreateTaskInput, Goal, Milestone, MilestoneStatus, RoadmapStatus
from questcore.contracts.state import ActiveRoadmap, RoadmapCacheEntry
from questcore.engine.milestones import (
    MilestoneAdvance,
    advance_milestones,
    current_milestone,
    find_milestone,
    replace_milestone,
    validate_roadmap,
)

_LOG = logging.getLogger(__name__)


class ProgressionEngine:
    """Owns the Active Roadmap Selection and drives milestone transitions.

    Three call paths write the selection: explicit user selection, automatic
    selection after the first goal fetch, and roadmap refreshes triggered by
    generation polling. Each explicit selection bumps an intent counter;
    responses captured under an older intent are discarded, so the last
    explicit user intent wins regardless of arrival order.
    """

    def __init__(self, gateway: QuestGateway, cache: TTLCache[Any]) -> None:
        self._gateway = gateway
        self._cache = cache
        self._active: ActiveRoadmap | None = None
        self._intent = 0
        self._intent_goal_id: str | None = None

    @property
    def active_roadmap(self) -> ActiveRoadmap | None:
        return self._active

    @property
    def active_milestone(self) -> Milestone | None:
        if self._active is None:
            return None
        return current_milestone(self._active.milestones)

    def roadmap_entry(self, goal_id: str) -> RoadmapCacheEntry | None:
        cached = self._cache.get(roadmap_scope(goal_id))
        return cached.value if cached is not None else None

    def roadmap_entries(self) -> dict[str, RoadmapCacheEntry]:
        entries: dict[str, RoadmapCacheEntry] = {}
        for key, cached in self._cache.items(ROADMAP_PREFIX):
            goal_id = goal_id_from_scope(key)
            if goal_id is not None:
                entries[goal_id] = cached.value
        return entries

    # ------------------------------------------------------------------
    # Roadmap fetching and selection
    # ------------------------------------------------------------------

    async def fetch_roadmap(
        self,
        goal_id: str,
        *,
        goal: Goal | None = None,
        force_refresh: bool = False,
    ) -> list[Milestone]:
        """Resolve a goal's milestones through the cache.

        A network result refreshes the selection only when it still points at
        *goal_id* under the intent that was current when the request started.
        """
        key = roadmap_scope(goal_id)
        if not force_refresh:
            cached = self._cache.get_fresh(key)
            if cached is not None:
                _LOG.debug("Roadmap cache hit for goal %s", goal_id)
                return list(cached.value.milestones)

        intent = self._intent
        generation = self._cache.generation(key)
        milestones = validate_roadmap(goal_id, await self._gateway.get_roadmap(goal_id))

        if goal is None:
            goal = self._known_goal(goal_id)
        entry = RoadmapCacheEntry(milestones=milestones, fetched_at=self._cache.now(), goal=goal)
        if not self._cache.put(key, entry, entry.fetched_at, generation=generation):
            _LOG.warning("Discarding roadmap for goal %s: invalidated while in flight", goal_id)
            return milestones

        active = self._active
        if active is not None and active.goal_id == goal_id and intent == self._intent:
            self._active = ActiveRoadmap(goal_id=goal_id, goal=goal or active.goal, milestones=milestones)
        return milestones

    async def set_active_roadmap(self, goal: Goal, *, explicit: bool = True) -> ActiveRoadmap | None:
        """Point the selection at *goal*.

        Goals without a ready roadmap are selected with no milestones. If the
        milestone fetch fails the selection degrades to *goal* with
        ``roadmap_unavailable`` set and the error is re-raised. Automatic
        (non-explicit) selections only apply while nothing is selected.

        Returns:
            The committed selection, or None when a newer intent superseded
            this request while it was in flight.
        """
        if explicit:
            self._intent += 1
            self._intent_goal_id = goal.id
        intent = self._intent

        if goal.roadmap_status != RoadmapStatus.READY:
            _LOG.info("Goal %s has no ready roadmap (status: %s)", goal.id, goal.roadmap_status)
            return self._commit_selection(ActiveRoadmap(goal_id=goal.id, goal=goal), intent, explicit)

        try:
            milestones = await self.fetch_roadmap(goal.id, goal=goal)
        except QuestCoreError:
            _LOG.warning("Roadmap unavailable for goal %s; selecting it without milestones", goal.id)
            self._commit_selection(
                ActiveRoadmap(goal_id=goal.id, goal=goal, roadmap_unavailable=True), intent, explicit
            )
            raise
        selection = ActiveRoadmap(goal_id=goal.id, goal=goal, milestones=milestones)
        return self._commit_selection(selection, intent, explicit)

    def _commit_selection(self, selection: ActiveRoadmap, intent: int, explicit: bool) -> ActiveRoadmap | None:
        if intent != self._intent or (not explicit and self._active is not None):
            _LOG.info("Discarding stale roadmap selection for goal %s", selection.goal_id)
            return None
        self._active = selection
        if explicit and self._intent_goal_id == selection.goal_id:
            self._intent_goal_id = None
        return selection

    def clear_selection(self) -> None:
        self._active = None
        self._intent += 1
        self._intent_goal_id = None

    def forget_goal(self, goal_id: str) -> None:
        """Drop every trace of a deleted goal, including in-flight selections of it."""
        self._cache.invalidate(roadmap_scope(goal_id))
        if self._active is not None and self._active.goal_id == goal_id:
            self._active = None
        if self._intent_goal_id == goal_id:
            self._intent += 1
            self._intent_goal_id = None

    def refresh_goal(self, goal: Goal) -> None:
        """Propagate a confirmed goal update to denormalized copies."""
        if self._active is not None and self._active.goal_id == goal.id:
            self._active = self._active.model_copy(update={"goal": goal})
        key = roadmap_scope(goal.id)
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.put(key, cached.value.model_copy(update={"goal": goal}), cached.fetched_at)

    def restore(self, active: ActiveRoadmap | None, entries: dict[str, RoadmapCacheEntry]) -> None:
        for goal_id, entry in entries.items():
            self._cache.put(roadmap_scope(goal_id), entry, entry.fetched_at)
        self._active = active

    # ------------------------------------------------------------------
    # Milestone transitions
    # ------------------------------------------------------------------

    async def complete_milestone(self, goal_id: str, milestone_id: str) -> MilestoneAdvance:
        """Complete the active milestone and unlock the next locked one.

        Each transition is committed only after the gateway confirms it; the
        goal's roadmap cache entry is invalidated because the server-side
        milestone set changed.
        """
        milestones = await self.fetch_roadmap(goal_id)
        planned = advance_milestones(milestones, milestone_id)

        completed = await self._gateway.update_milestone(goal_id, milestone_id, MilestoneStatus.COMPLETED)
        current = replace_milestone(milestones, completed)
        self._commit_transition(goal_id, current)

        activated: Milestone | None = None
        if planned.activated is not None:
            activated = await self._gateway.update_milestone(goal_id, planned.activated.id, MilestoneStatus.ACTIVE)
            current = replace_milestone(current, activated)
            self._commit_transition(goal_id, current)
        else:
            _LOG.info("Goal %s has no locked milestones left", goal_id)

        return MilestoneAdvance(completed=completed, activated=activated, milestones=current)

    def _commit_transition(self, goal_id: str, milestones: list[Milestone]) -> None:
        self._cache.invalidate(roadmap_scope(goal_id))
        if self._active is not None and self._active.goal_id == goal_id:
            self._active = self._active.model_copy(update={"milestones": milestones})

    def validate_task_binding(self, input: CreateTaskInput) -> None:
        """Reject tasks bound to milestones the client knows cannot hold them.

        Raises:
            QuestValidationError: If the milestone is locked or belongs to a
                goal other than the task's goal.
        """
        if input.milestone_id is None:
            return
        milestone = self._known_milestone(input.milestone_id)
        if milestone is None:
            return
        errors: list[str] = []
        if input.goal_id is not None and milestone.goal_id != input.goal_id:
            errors.append(f"milestone {milestone.id} belongs to goal {milestone.goal_id}, not {input.goal_id}")
        if milestone.status == MilestoneStatus.LOCKED:
            errors.append(f"milestone {milestone.id} is locked and cannot hold tasks")
        if errors:
            raise QuestValidationError(errors)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _known_goal(self, goal_id: str) -> Goal | None:
        entry = self.roadmap_entry(goal_id)
        if entry is not None and entry.goal is not None:
            return entry.goal
        if self._active is not None and self._active.goal_id == goal_id:
            return self._active.goal
        return None

    def _known_milestone(self, milestone_id: str) -> Milestone | None:
        if self._active is not None:
            found = find_milestone(self._active.milestones, milestone_id)
            if found is not None:
                return found
        for entry in self.roadmap_entries().values():
            found = find_milestone(entry.milestones, milestone_id)
            if found is not None:
                return found
        return None
