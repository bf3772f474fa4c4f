"""Exception hierarchy for questcore.

All questcore exceptions inherit from :class:`QuestCoreError`, so callers can
catch any library error with a single ``except`` clause while still telling
apart the failure modes a UI needs to message differently ("doesn't exist"
versus "temporarily unreachable", server-reported versus client-synthesized
generation failures).
"""

from __future__ import annotations


class QuestCoreError(Exception):
    """Base exception for all questcore errors."""


class ConfigError(QuestCoreError):
    """Configuration loading or validation failure."""


class PersistenceError(QuestCoreError):
    """Snapshot could not be written or read back."""


class QuestValidationError(QuestCoreError):
    """Input rejected locally before any gateway call.

    Attributes:
        errors: Individual validation error messages.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        joined = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Validation failed:\n{joined}")


class GatewayError(QuestCoreError):
    """Remote quest gateway call failed (network, 5xx or malformed payload)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(GatewayError):
    """The gateway rejected the bearer token."""


class NotFoundError(GatewayError):
    """The requested entity does not exist on the gateway."""

    def __init__(self, message: str, *, resource: str) -> None:
        super().__init__(message, status_code=404)
        self.resource = resource


class ProgressionError(QuestCoreError):
    """A milestone transition violates the roadmap state machine."""


class RoadmapIntegrityError(ProgressionError):
    """A fetched roadmap violates milestone ordering invariants."""


class GenerationError(QuestCoreError):
    """Roadmap generation for a goal ended without a usable roadmap."""

    client_synthesized: bool = False

    def __init__(self, message: str, *, goal_id: str) -> None:
        super().__init__(message)
        self.goal_id = goal_id


class GenerationFailedError(GenerationError):
    """The backend reported the roadmap generation as failed."""


class GenerationTimeoutError(GenerationError):
    """The client gave up polling before the backend reached a terminal state."""

    client_synthesized = True

    def __init__(self, message: str, *, goal_id: str, attempts: int) -> None:
        super().__init__(message, goal_id=goal_id)
        self.attempts = attempts
