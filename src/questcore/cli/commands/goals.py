"""Goals command."""

from __future__ import annotations

import argparse

from questcore import ActiveRoadmap, Goal
from questcore.cli.common import format_date_or_none, open_store


def format_goals(goals: list[Goal], active: ActiveRoadmap | None) -> str:
    if not goals:
        return "No goals yet."
    active_id = active.goal_id if active is not None else None
    lines: list[str] = []
    for goal in goals:
        marker = "*" if goal.id == active_id else " "
        lines.append(
            f"{marker} {goal.id:<12} {goal.title:<32} {goal.status:<10} "
            f"roadmap: {goal.roadmap_status:<11} target: {format_date_or_none(goal.target_date)}"
        )
    return "\n".join(lines)


async def run_goals(args: argparse.Namespace) -> list[Goal]:
    import questcore.cli as cli

    config = cli.load_config(args.config)
    async with open_store(config) as store:
        goals = await store.fetch_goals(force_refresh=args.refresh)
        print(format_goals(goals, store.active_roadmap))
    return goals


__all__ = ["format_goals", "run_goals"]
