"""Today command."""

from __future__ import annotations

import argparse

from questcore import AvailableTasks, Task, TaskStatus, completion_rate
from questcore.cli.common import open_store


def _format_task(task: Task) -> str:
    check = "x" if task.status == TaskStatus.COMPLETED else " "
    return f"  [{check}] {task.title} ({task.priority}, due {task.due_date.isoformat()})"


def format_available_tasks(available: AvailableTasks) -> str:
    rate = completion_rate(available.today)
    lines = [f"Today: {len(available.today)} tasks, {rate:.0%} completed"]
    lines.extend(_format_task(task) for task in available.today)
    lines.append("")
    if not available.show_future:
        lines.append("Upcoming: locked (complete 80% of today's tasks to unlock)")
    elif not available.future:
        lines.append("Upcoming: nothing scheduled")
    else:
        lines.append(f"Upcoming: {len(available.future)} tasks")
        lines.extend(_format_task(task) for task in available.future)
    return "\n".join(lines)


async def run_today(args: argparse.Namespace) -> AvailableTasks:
    import questcore.cli as cli

    config = cli.load_config(args.config)
    async with open_store(config) as store:
        await store.refresh_today_data()
        if store.error is not None:
            raise store.error
        available = store.get_available_tasks()
        print(format_available_tasks(available))
    return available


__all__ = ["format_available_tasks", "run_today"]
