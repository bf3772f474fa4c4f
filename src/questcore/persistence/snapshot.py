"""Store snapshot persistence helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from questcore.contracts.exceptions import PersistenceError
from questcore.contracts.state import StoreSnapshot


def persist_snapshot(*, snapshot: StoreSnapshot, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(snapshot.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"failed to persist store snapshot: {path}") from exc


def load_snapshot(*, path: Path) -> StoreSnapshot | None:
    if not path.exists():
        return None
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
        return StoreSnapshot.model_validate(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise PersistenceError(f"invalid store snapshot file: {path}") from exc
