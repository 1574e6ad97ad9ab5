"""
Entry point for the bridge server.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import uvicorn

from .core import BridgeServer

if TYPE_CHECKING:
    from easytrade.client.client import TradeClient


def start_server(
    client: TradeClient, host: str | None = None, port: int | None = None
) -> None:
    """Start the bridge server."""
    server = BridgeServer(client, server_host=host, server_port=port)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)
