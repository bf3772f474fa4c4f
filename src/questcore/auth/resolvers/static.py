"""Token taken verbatim from ``questcore.json`` (``"auth": "token"``)."""

from __future__ import annotations

from dataclasses import dataclass

from questcore.auth.base import TokenResolver
from questcore.contracts.exceptions import AuthenticationError


@dataclass(frozen=True)
class StaticTokenResolver(TokenResolver):
    """Serves the bearer token configured inline for the quest gateway."""

    token: str

    async def resolve(self) -> str:
        bearer = self.token.strip()
        if not bearer:
            raise AuthenticationError("Configured quest gateway token is empty")
        return bearer
