"""Roadmap inspection and selection commands."""

from __future__ import annotations

import argparse

from questcore import ActiveRoadmap, Milestone, MilestoneStatus
from questcore.cli.common import open_store

_STATUS_MARKERS = {
    MilestoneStatus.COMPLETED: "[x]",
    MilestoneStatus.ACTIVE: "[>]",
    MilestoneStatus.LOCKED: "[ ]",
}


def format_roadmap(goal_id: str, milestones: list[Milestone]) -> str:
    if not milestones:
        return f"Goal {goal_id} has no roadmap."
    lines = [f"Roadmap for goal {goal_id}:"]
    for milestone in milestones:
        duration = f" ({milestone.duration_days}d)" if milestone.duration_days else ""
        lines.append(f"  {_STATUS_MARKERS[milestone.status]} {milestone.sequence}. {milestone.title}{duration}")
    return "\n".join(lines)


def format_selection(selection: ActiveRoadmap | None) -> str:
    if selection is None:
        return "Selection superseded by a newer request."
    title = selection.goal.title if selection.goal is not None else selection.goal_id
    current = selection.active_milestone
    if not selection.milestones:
        return f"Active roadmap: {title} (no milestones yet)"
    if current is None:
        return f"Active roadmap: {title} (all milestones completed)"
    return f"Active roadmap: {title} (current milestone: {current.title})"


async def run_roadmap(args: argparse.Namespace) -> list[Milestone]:
    import questcore.cli as cli

    config = cli.load_config(args.config)
    async with open_store(config) as store:
        milestones = await store.fetch_roadmap(args.goal_id, force_refresh=args.refresh)
        print(format_roadmap(args.goal_id, milestones))
    return milestones


async def run_select(args: argparse.Namespace) -> ActiveRoadmap | None:
    import questcore.cli as cli

    config = cli.load_config(args.config)
    async with open_store(config) as store:
        selection = await store.set_active_roadmap(args.goal_id)
        print(format_selection(selection))
    return selection


__all__ = ["format_roadmap", "format_selection", "run_roadmap", "run_select"]
