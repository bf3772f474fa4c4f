"""Snapshot persistence shared by the store and the CLI."""

from questcore.persistence.snapshot import load_snapshot, persist_snapshot

__all__ = ["load_snapshot", "persist_snapshot"]
