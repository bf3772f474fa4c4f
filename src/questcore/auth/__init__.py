"""Auth module public exports."""

from questcore.auth.base import TokenResolver
from questcore.auth.factory import create_token_resolver

__all__ = ["TokenResolver", "create_token_resolver"]
