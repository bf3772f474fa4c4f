"""Cross-subsystem events."""

from questcore.events.bus import EventBus
from questcore.events.chat_signal import from_structured, infer_from_text

__all__ = ["EventBus", "from_structured", "infer_from_text"]
