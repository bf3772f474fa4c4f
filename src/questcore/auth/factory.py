"""Token resolver factory."""

from __future__ import annotations

from questcore.auth.base import TokenResolver
from questcore.auth.resolvers.env import EnvTokenResolver
from questcore.auth.resolvers.static import StaticTokenResolver
from questcore.contracts.config import QuestCoreConfig
from questcore.contracts.exceptions import ConfigError

RESOLVERS: dict[str, type[TokenResolver]] = {
    "env": EnvTokenResolver,
    "token": StaticTokenResolver,
}


def create_token_resolver(config: QuestCoreConfig) -> TokenResolver:
    auth_mode = config.auth
    if auth_mode not in RESOLVERS:
        raise ConfigError(f"Unknown auth mode: {auth_mode}")

    if auth_mode == "env":
        return EnvTokenResolver()
    return StaticTokenResolver(token=config.token or "")
