from __future__ import annotations

import pytest

from questcore.contracts.exceptions import ProgressionError, RoadmapIntegrityError
from questcore.contracts.models import MilestoneStatus
from questcore.engine.milestones import (
    advance_milestones,
    current_milestone,
    next_locked,
    validate_roadmap,
)
from tests.fakes.gateway import make_milestones

A = MilestoneStatus.ACTIVE
C = MilestoneStatus.COMPLETED
L = MilestoneStatus.LOCKED


def test_validate_roadmap_sorts_by_sequence() -> None:
    milestones = make_milestones("g1", [C, A, L])

    ordered = validate_roadmap("g1", reversed(milestones))

    assert [m.sequence for m in ordered] == [1, 2, 3]


@pytest.mark.parametrize(
    ("statuses", "message"),
    [
        ([A, A, L], "more than one active"),
        ([L, C, L], "out of sequence order"),
        ([A, L, C], "out of sequence order"),
    ],
)
def test_validate_roadmap_rejects_inconsistent_states(statuses: list[MilestoneStatus], message: str) -> None:
    with pytest.raises(RoadmapIntegrityError, match=message):
        validate_roadmap("g1", make_milestones("g1", statuses))


def test_validate_roadmap_rejects_foreign_and_duplicate_milestones() -> None:
    own = make_milestones("g1", [A])
    foreign = make_milestones("g2", [L])
    duplicate = own[0].model_copy(update={"id": "dup"})

    with pytest.raises(RoadmapIntegrityError) as exc_info:
        validate_roadmap("g1", [*own, *foreign, duplicate])

    assert "belongs to goal g2" in str(exc_info.value)
    assert "duplicate sequence 1" in str(exc_info.value)


def test_current_milestone_is_first_active_or_none() -> None:
    assert current_milestone(make_milestones("g1", [C, A, L])).id == "g1-m2"  # type: ignore[union-attr]
    assert current_milestone(make_milestones("g1", [C, C])) is None


def test_next_locked_uses_sequence_order() -> None:
    milestones = make_milestones("g1", [C, L, L])

    assert next_locked(list(reversed(milestones))).id == "g1-m2"  # type: ignore[union-attr]


def test_advance_completes_active_and_unlocks_next() -> None:
    advance = advance_milestones(make_milestones("g1", [C, A, L, L]), "g1-m2")

    assert advance.completed.status == C
    assert advance.activated is not None
    assert advance.activated.id == "g1-m3"
    assert [m.status for m in advance.milestones] == [C, C, A, L]
    assert advance.roadmap_finished is False


def test_advance_last_milestone_finishes_roadmap() -> None:
    advance = advance_milestones(make_milestones("g1", [C, A]), "g1-m2")

    assert advance.activated is None
    assert advance.roadmap_finished is True
    assert [m.status for m in advance.milestones] == [C, C]


@pytest.mark.parametrize(
    ("milestone_id", "message"),
    [
        ("g1-m1", "already completed"),
        ("g1-m3", "locked"),
        ("missing", "not found"),
    ],
)
def test_advance_rejects_illegal_transitions(milestone_id: str, message: str) -> None:
    with pytest.raises(ProgressionError, match=message):
        advance_milestones(make_milestones("g1", [C, A, L]), milestone_id)


def test_advanced_roadmaps_never_have_two_active_milestones() -> None:
    milestones = make_milestones("g1", [A, L, L, L])

    for _ in range(len(milestones)):
        active = current_milestone(milestones)
        assert active is not None
        milestones = advance_milestones(milestones, active.id).milestones
        validate_roadmap("g1", milestones)

    assert all(m.status == C for m in milestones)
