"""Rich-based roadmap generation progress display."""

from __future__ import annotations

from types import TracebackType

from rich.console import Console
from rich.progress import MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.progress import TaskID as RichTaskID

from questcore.contracts.models import RoadmapStatus
from questcore.engine.progress import PollProgress


class RichPollProgress(PollProgress):
    """Live spinner shown while a roadmap is being generated.

    Use as a context manager so the live display is properly started/stopped::

        with RichPollProgress() as progress:
            store = await QuestStore.from_config(config, progress=progress)
    """

    def __init__(self) -> None:
        self._console = Console(stderr=True)
        self._progress = Progress(
            SpinnerColumn(finished_text="[green]✓[/green]"),
            TextColumn("{task.description}"),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
            transient=False,
        )
        self._task_ids: dict[str, RichTaskID] = {}

    def __enter__(self) -> RichPollProgress:
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._progress.stop()

    def poll_start(self, goal_id: str, max_attempts: int) -> None:
        self._task_ids[goal_id] = self._progress.add_task(f"[cyan]Generating[/] {goal_id}", total=max_attempts)

    def attempt(self, goal_id: str, attempt: int, status: RoadmapStatus) -> None:
        task_id = self._task_ids.get(goal_id)
        if task_id is not None:
            self._progress.update(task_id, completed=attempt, description=f"[cyan]Generating[/] {goal_id} ({status})")

    def poll_done(self, goal_id: str, outcome: str) -> None:
        task_id = self._task_ids.get(goal_id)
        if task_id is None:
            return
        if outcome == "ready":
            task = self._progress.tasks[task_id]
            self._progress.update(task_id, total=task.completed or 1, description=f"[green]Ready[/] {goal_id}")
        else:
            self._progress.update(task_id, description=f"[red]✗[/red] {goal_id} ({outcome})")
