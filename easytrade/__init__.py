# easytrade - Steam trade offer automation

from easytrade.client.client import TradeClient
from easytrade.client.commands import CommandSurface
from easytrade.client.domain.entities import RetryPolicy, SessionState

__all__ = [
    "CommandSurface",
    "RetryPolicy",
    "SessionState",
    "TradeClient",
]
