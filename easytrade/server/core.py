"""
Local bridge server exposing a trade client over HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from easytrade.common.config import Config

from .routes import BridgeRoutes

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from easytrade.client.client import TradeClient


class BridgeServer:
    """Serves the command surface and notification stream of one client."""

    def __init__(
        self,
        client: TradeClient,
        server_host: str | None = None,
        server_port: int | None = None,
    ):
        config = Config()
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.server_host = server_host or config.SERVER_HOST
        self.server_port = server_port or config.SERVER_PORT
        self.app = FastAPI(title="easytrade", lifespan=self._lifespan)

        # Setup routes
        self.routes = BridgeRoutes(client.commands, client.events)
        self.routes.setup_routes(self.app)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        self.logger.info(
            "Bridge listening on http://%s:%s", self.server_host, self.server_port
        )
        yield
        await self.client.close()
        self.logger.info("Bridge stopped")
