"""
Trade client wiring session supervision, offer handling and secrets.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

from easytrade.client.application.offer_ingest import OfferIngest
from easytrade.client.application.session_guard import SessionGuard
from easytrade.client.commands import CommandSurface
from easytrade.client.infrastructure.config_loader import ConfigLoader
from easytrade.client.infrastructure.secret_store import SecretStore
from easytrade.client.infrastructure.time_sync import TimeSync
from easytrade.common.events import EventBus

if TYPE_CHECKING:
    from easytrade.common.interfaces import IRemoteTradingClient
    from easytrade.common.models import ClientConfig

logger = logging.getLogger(__name__)


class TradeClient:
    """Trade client for one Steam account at a time.

    The remote Steam client is injected; everything built on top of it is
    owned by this instance, so several clients can coexist (tests do this).
    """

    def __init__(
        self,
        remote: IRemoteTradingClient,
        client_config: ClientConfig | None = None,
        time_sync: TimeSync | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config_loader = ConfigLoader(client_config)
        cfg = self.config_loader

        self.events = EventBus(cfg.event_buffer_size)
        self.secret_store = SecretStore(cfg.mafiles_dir, cfg.code_period)
        self.secret_store.scan()

        self.guard = SessionGuard(
            remote,
            secret_store=self.secret_store,
            events=self.events,
            retry_policy=cfg.retry_policy(),
            health_check_interval=cfg.health_check_interval,
            offer_recency_window=cfg.offer_recency_window,
            disconnect_grace=cfg.disconnect_grace,
            rate_limit_cooldown=cfg.rate_limit_cooldown,
            auto_accept_gifts=cfg.auto_accept_gifts,
            clock=clock,
            sleep=sleep,
        )
        self.ingest = OfferIngest(self.guard, self.events)
        self.commands = CommandSurface(
            self.guard,
            self.ingest,
            self.secret_store,
            time_sync or TimeSync(),
        )
        logger.info(
            "Trade client ready, %s maFiles loaded", len(self.secret_store.records)
        )

    async def close(self) -> None:
        """Log out and detach from the remote client."""
        self.ingest.deactivate()
        await self.guard.close()
