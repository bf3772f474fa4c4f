from __future__ import annotations

import asyncio
from datetime import date

import pytest

from questcore.cache.ttl_cache import TTLCache, roadmap_scope
from questcore.contracts.exceptions import GatewayError, ProgressionError, QuestValidationError, RoadmapIntegrityError
from questcore.contracts.models import CreateTaskInput, Goal, MilestoneStatus, RoadmapStatus
from questcore.engine.progression import ProgressionEngine
from tests.fakes.clock import FakeClock
from tests.fakes.gateway import FakeGateway, make_goal, make_milestones

A = MilestoneStatus.ACTIVE
C = MilestoneStatus.COMPLETED
L = MilestoneStatus.LOCKED


@pytest.fixture
def engine(gateway: FakeGateway, cache: TTLCache[object]) -> ProgressionEngine:
    return ProgressionEngine(gateway, cache)


def _ready(gateway: FakeGateway, goal_id: str, statuses: list[MilestoneStatus]) -> Goal:
    goal = make_goal(goal_id, roadmap_status=RoadmapStatus.READY)
    gateway.goals[goal_id] = goal
    gateway.roadmaps[goal_id] = make_milestones(goal_id, statuses)
    return goal


# ---------------------------------------------------------------------------
# fetch_roadmap
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_roadmap_uses_cache_while_fresh(
    engine: ProgressionEngine, gateway: FakeGateway, clock: FakeClock
) -> None:
    _ready(gateway, "g1", [A, L])

    first = await engine.fetch_roadmap("g1")
    clock.advance(minutes=1)
    second = await engine.fetch_roadmap("g1")

    assert first == second
    assert gateway.calls_to("get_roadmap") == ["g1"]


@pytest.mark.asyncio
async def test_fetch_roadmap_force_refresh_bypasses_cache(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    _ready(gateway, "g1", [A, L])

    await engine.fetch_roadmap("g1")
    await engine.fetch_roadmap("g1", force_refresh=True)

    assert gateway.calls_to("get_roadmap") == ["g1", "g1"]


@pytest.mark.asyncio
async def test_fetch_roadmap_refetches_after_ttl(
    engine: ProgressionEngine, gateway: FakeGateway, clock: FakeClock
) -> None:
    _ready(gateway, "g1", [A, L])

    await engine.fetch_roadmap("g1")
    clock.advance(minutes=5)
    await engine.fetch_roadmap("g1")

    assert len(gateway.calls_to("get_roadmap")) == 2


@pytest.mark.asyncio
async def test_inconsistent_roadmap_is_not_cached(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    _ready(gateway, "g1", [A, A])

    with pytest.raises(RoadmapIntegrityError):
        await engine.fetch_roadmap("g1")

    assert engine.roadmap_entry("g1") is None


@pytest.mark.asyncio
async def test_fetch_failure_leaves_previous_entry(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    _ready(gateway, "g1", [A, L])
    await engine.fetch_roadmap("g1")
    gateway.failures["get_roadmap"] = GatewayError("offline")

    with pytest.raises(GatewayError):
        await engine.fetch_roadmap("g1", force_refresh=True)

    entry = engine.roadmap_entry("g1")
    assert entry is not None
    assert len(entry.milestones) == 2


# ---------------------------------------------------------------------------
# set_active_roadmap
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_select_goal_without_ready_roadmap_has_no_milestones(
    engine: ProgressionEngine, gateway: FakeGateway
) -> None:
    goal = make_goal("g1", roadmap_status=RoadmapStatus.GENERATING)

    selection = await engine.set_active_roadmap(goal)

    assert selection is not None
    assert selection.goal_id == "g1"
    assert selection.milestones == []
    assert selection.roadmap_unavailable is False
    assert gateway.calls_to("get_roadmap") == []


@pytest.mark.asyncio
async def test_select_ready_goal_populates_milestones(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    goal = _ready(gateway, "g1", [C, A, L])

    selection = await engine.set_active_roadmap(goal)

    assert selection is not None
    assert [m.id for m in selection.milestones] == ["g1-m1", "g1-m2", "g1-m3"]
    assert engine.active_milestone is not None
    assert engine.active_milestone.id == "g1-m2"
    assert engine.roadmap_entry("g1") is not None


@pytest.mark.asyncio
async def test_select_degrades_to_requested_goal_on_fetch_failure(
    engine: ProgressionEngine, gateway: FakeGateway
) -> None:
    first = _ready(gateway, "g1", [A, L])
    second = _ready(gateway, "g2", [A, L])
    await engine.set_active_roadmap(first)
    gateway.failures["get_roadmap"] = GatewayError("offline")

    with pytest.raises(GatewayError):
        await engine.set_active_roadmap(second)

    active = engine.active_roadmap
    assert active is not None
    assert active.goal_id == "g2"
    assert active.milestones == []
    assert active.roadmap_unavailable is True


@pytest.mark.asyncio
async def test_late_response_for_previous_goal_is_discarded(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    goal_a = _ready(gateway, "a", [A, L])
    goal_b = _ready(gateway, "b", [A, L])
    release_a = gateway.hold("get_roadmap", "a")

    pending_a = asyncio.create_task(engine.set_active_roadmap(goal_a))
    await asyncio.sleep(0)
    selection_b = await engine.set_active_roadmap(goal_b)
    release_a.set()
    selection_a = await pending_a

    assert selection_b is not None
    assert selection_a is None
    assert engine.active_roadmap is not None
    assert engine.active_roadmap.goal_id == "b"
    assert engine.roadmap_entry("a") is not None


@pytest.mark.asyncio
async def test_background_refresh_does_not_override_newer_selection(
    engine: ProgressionEngine, gateway: FakeGateway
) -> None:
    goal_a = _ready(gateway, "a", [A, L])
    goal_b = _ready(gateway, "b", [A, L])
    await engine.set_active_roadmap(goal_a)
    release = gateway.hold("get_roadmap", "a")

    refresh = asyncio.create_task(engine.fetch_roadmap("a", force_refresh=True))
    await asyncio.sleep(0)
    await engine.set_active_roadmap(goal_b)
    release.set()
    await refresh

    assert engine.active_roadmap is not None
    assert engine.active_roadmap.goal_id == "b"


@pytest.mark.asyncio
async def test_automatic_selection_never_replaces_existing_selection(
    engine: ProgressionEngine, gateway: FakeGateway
) -> None:
    goal_a = _ready(gateway, "a", [A, L])
    goal_b = _ready(gateway, "b", [A, L])
    await engine.set_active_roadmap(goal_a)

    result = await engine.set_active_roadmap(goal_b, explicit=False)

    assert result is None
    assert engine.active_roadmap is not None
    assert engine.active_roadmap.goal_id == "a"


# ---------------------------------------------------------------------------
# forget_goal
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_forget_goal_invalidates_fresh_entry_and_selection(
    engine: ProgressionEngine, gateway: FakeGateway, cache: TTLCache[object]
) -> None:
    goal = _ready(gateway, "g1", [A, L])
    await engine.set_active_roadmap(goal)

    engine.forget_goal("g1")

    assert cache.get(roadmap_scope("g1")) is None
    assert engine.active_roadmap is None


@pytest.mark.asyncio
async def test_in_flight_fetch_cannot_resurrect_forgotten_goal(
    engine: ProgressionEngine, gateway: FakeGateway
) -> None:
    goal = _ready(gateway, "g1", [A, L])
    release = gateway.hold("get_roadmap", "g1")

    pending = asyncio.create_task(engine.set_active_roadmap(goal))
    await asyncio.sleep(0)
    engine.forget_goal("g1")
    release.set()
    result = await pending

    assert result is None
    assert engine.roadmap_entry("g1") is None
    assert engine.active_roadmap is None


# ---------------------------------------------------------------------------
# complete_milestone
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_complete_milestone_confirms_each_transition(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    goal = _ready(gateway, "g1", [C, A, L])
    await engine.set_active_roadmap(goal)

    advance = await engine.complete_milestone("g1", "g1-m2")

    assert gateway.calls_to("update_milestone") == ["g1-m2", "g1-m3"]
    assert advance.activated is not None
    assert advance.activated.id == "g1-m3"
    active = engine.active_roadmap
    assert active is not None
    assert [m.status for m in active.milestones] == [C, C, A]
    assert engine.roadmap_entry("g1") is None


@pytest.mark.asyncio
async def test_complete_last_milestone_finishes_roadmap(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    goal = _ready(gateway, "g1", [C, A])
    await engine.set_active_roadmap(goal)

    advance = await engine.complete_milestone("g1", "g1-m2")

    assert advance.roadmap_finished is True
    assert gateway.calls_to("update_milestone") == ["g1-m2"]


@pytest.mark.asyncio
async def test_complete_locked_milestone_is_rejected_before_gateway(
    engine: ProgressionEngine, gateway: FakeGateway
) -> None:
    _ready(gateway, "g1", [A, L])

    with pytest.raises(ProgressionError):
        await engine.complete_milestone("g1", "g1-m2")

    assert gateway.calls_to("update_milestone") == []


@pytest.mark.asyncio
async def test_failed_completion_leaves_selection_unchanged(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    goal = _ready(gateway, "g1", [A, L])
    await engine.set_active_roadmap(goal)
    gateway.failures["update_milestone"] = GatewayError("offline")

    with pytest.raises(GatewayError):
        await engine.complete_milestone("g1", "g1-m1")

    active = engine.active_roadmap
    assert active is not None
    assert [m.status for m in active.milestones] == [A, L]


# ---------------------------------------------------------------------------
# validate_task_binding
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_task_binding_rejects_locked_milestone(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    await engine.set_active_roadmap(_ready(gateway, "g1", [A, L]))

    with pytest.raises(QuestValidationError, match="locked"):
        engine.validate_task_binding(
            CreateTaskInput(title="Read", due_date=date(2026, 3, 2), goal_id="g1", milestone_id="g1-m2")
        )


@pytest.mark.asyncio
async def test_task_binding_rejects_goal_mismatch(engine: ProgressionEngine, gateway: FakeGateway) -> None:
    await engine.set_active_roadmap(_ready(gateway, "g1", [A, L]))

    with pytest.raises(QuestValidationError, match="belongs to goal g1"):
        engine.validate_task_binding(
            CreateTaskInput(title="Read", due_date=date(2026, 3, 2), goal_id="g2", milestone_id="g1-m1")
        )


def test_task_binding_allows_unknown_milestones(engine: ProgressionEngine) -> None:
    engine.validate_task_binding(
        CreateTaskInput(title="Read", due_date=date(2026, 3, 2), goal_id="g1", milestone_id="unknown")
    )
