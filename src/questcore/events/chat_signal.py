"""Translate chat completions into :class:`QuestsModified` events.

Prefer :func:`from_structured`: it reads the explicit list of mutated entity
kinds the chat backend reports. :func:`infer_from_text` keeps the mobile
app's keyword heuristic for backends that only return prose; it produces
false positives ("I haven't created anything") and misses paraphrases, so
its events are always marked ``confident=False``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from questcore.contracts.events import EntityKind, QuestsModified

CHAT_SOURCE = "chat"

_MUTATION_VERBS = re.compile(r"\b(created|added|updated|deleted|removed|completed|scheduled|generated)\b", re.I)

_ENTITY_WORDS: dict[EntityKind, re.Pattern[str]] = {
    EntityKind.GOAL: re.compile(r"\b(goals?|epic quests?|epics?)\b", re.I),
    EntityKind.TASK: re.compile(r"\b(tasks?|daily quests?|quests?)\b", re.I),
    EntityKind.MILESTONE: re.compile(r"\b(milestones?|roadmaps?)\b", re.I),
}


def from_structured(payload: Mapping[str, Any]) -> QuestsModified | None:
    """Build an event from ``{"modified": ["goal", "task", ...]}``.

    Unknown kinds are ignored. Returns None when nothing was modified.
    """
    raw = payload.get("modified") or []
    known = {kind.value for kind in EntityKind}
    entities = frozenset(EntityKind(kind) for kind in raw if kind in known)
    if not entities:
        return None
    return QuestsModified(source=CHAT_SOURCE, entities=entities, confident=True)


def infer_from_text(text: str) -> QuestsModified | None:
    """Guess from free text whether the assistant changed quests."""
    if not _MUTATION_VERBS.search(text):
        return None
    entities = frozenset(kind for kind, pattern in _ENTITY_WORDS.items() if pattern.search(text))
    if not entities:
        entities = frozenset({EntityKind.TASK})
    return QuestsModified(source=CHAT_SOURCE, entities=entities, confident=False)
