"""Built-in token resolvers."""

from questcore.auth.resolvers.env import EnvTokenResolver
from questcore.auth.resolvers.static import StaticTokenResolver

__all__ = ["EnvTokenResolver", "StaticTokenResolver"]
