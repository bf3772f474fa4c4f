"""Quest gateway implementations."""

from questcore.gateway.http import HttpQuestGateway

__all__ = ["HttpQuestGateway"]
