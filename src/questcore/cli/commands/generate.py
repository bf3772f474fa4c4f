"""Generate command."""

from __future__ import annotations

import argparse

from questcore import PollOutcome, PollOutcomeKind
from questcore.cli.common import open_store
from questcore.cli.progress.rich import RichPollProgress


def format_generation_summary(outcome: PollOutcome) -> str:
    if outcome.kind == PollOutcomeKind.READY:
        count = len(outcome.milestones)
        return f"Roadmap ready for goal {outcome.goal_id}: {count} milestones ({outcome.attempts} polls)"
    return f"Roadmap generation for goal {outcome.goal_id} ended: {outcome.kind} after {outcome.attempts} polls"


async def _generate(args: argparse.Namespace, progress: RichPollProgress | None) -> PollOutcome:
    import questcore.cli as cli

    config = cli.load_config(args.config)
    async with open_store(config, progress=progress) as store:
        handle = await store.generate_roadmap(args.goal_id)
        outcome = await handle.wait()
    return outcome


async def run_generate(args: argparse.Namespace) -> PollOutcome:
    if not args.verbose:
        with RichPollProgress() as progress:
            outcome = await _generate(args, progress)
    else:
        outcome = await _generate(args, None)

    print(format_generation_summary(outcome))
    if outcome.error is not None:
        raise outcome.error
    return outcome


__all__ = ["format_generation_summary", "run_generate"]
