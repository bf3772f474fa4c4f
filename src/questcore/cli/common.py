"""Shared CLI helpers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from questcore import PollProgress, QuestCoreConfig, QuestStore


@asynccontextmanager
async def open_store(config: QuestCoreConfig, *, progress: PollProgress | None = None) -> AsyncIterator[QuestStore]:
    """Open a store rehydrated from the configured snapshot and persist it on success."""
    import questcore.cli as cli

    store = await cli.QuestStore.from_config(config, progress=progress)
    async with store:
        store.load(config.snapshot_path)
        yield store
        store.save(config.snapshot_path)


def format_date_or_none(value: date | None) -> str:
    if value is None:
        return "none"
    return value.isoformat()
