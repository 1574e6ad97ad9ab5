"""
Routes for the local bridge server.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI

from easytrade.common.models import Credentials

if TYPE_CHECKING:
    from easytrade.client.commands import CommandSurface
    from easytrade.common.events import EventBus


class BridgeRoutes:
    """Handles FastAPI routes forwarding to the command surface."""

    def __init__(self, commands: CommandSurface, events: EventBus):
        self.commands = commands
        self.events = events

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        app.get("/status")(self.status)
        app.post("/login")(self.login)
        app.post("/logout")(self.logout)
        app.get("/offers")(self.pending_offers)
        app.post("/offers/{offer_id}/accept")(self.accept_offer)
        app.post("/offers/{offer_id}/decline")(self.decline_offer)
        app.get("/settings/auto-accept-gifts")(self.auto_accept_setting)
        app.post("/settings/auto-accept-gifts")(self.toggle_auto_accept)
        app.get("/connection")(self.connection_status)
        app.post("/connection/reconnect")(self.force_reconnect)
        app.get("/secrets")(self.secrets)
        app.post("/secrets/scan")(self.scan_secrets)
        app.get("/secrets/{account_name}")(self.secret_available)
        app.post("/secrets/{account_name}/code")(self.generate_code)
        app.post("/time/sync")(self.sync_time)
        app.get("/events")(self.poll_events)

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    async def status(self) -> dict[str, Any]:
        return await self.commands.get_status()

    async def login(self, credentials: Credentials) -> dict[str, Any]:
        return await self.commands.login(credentials)

    async def logout(self) -> dict[str, Any]:
        return await self.commands.logout()

    async def pending_offers(self) -> dict[str, Any]:
        return await self.commands.get_pending_offers()

    async def accept_offer(self, offer_id: str) -> dict[str, Any]:
        return await self.commands.accept_offer(offer_id)

    async def decline_offer(self, offer_id: str) -> dict[str, Any]:
        return await self.commands.decline_offer(offer_id)

    async def auto_accept_setting(self) -> dict[str, Any]:
        return await self.commands.get_auto_accept_setting()

    async def toggle_auto_accept(self) -> dict[str, Any]:
        return await self.commands.toggle_auto_accept_gifts()

    async def connection_status(self) -> dict[str, Any]:
        return await self.commands.check_connection_status()

    async def force_reconnect(self) -> dict[str, Any]:
        return await self.commands.force_reconnect()

    async def secrets(self) -> dict[str, Any]:
        return await self.commands.get_secrets()

    async def scan_secrets(self) -> dict[str, Any]:
        return await self.commands.scan_secrets()

    async def secret_available(self, account_name: str) -> dict[str, Any]:
        return await self.commands.check_secret_available(account_name)

    async def generate_code(self, account_name: str) -> dict[str, Any]:
        return await self.commands.generate_code_for_account(account_name)

    async def sync_time(self) -> dict[str, Any]:
        return await self.commands.sync_time()

    async def poll_events(self, after: int = 0) -> dict[str, Any]:
        """Handle /events endpoint: notifications newer than ``after``."""
        events = self.events.since(after)
        return {
            "events": [event.model_dump(mode="json") for event in events],
            "last_sequence": self.events.last_sequence,
        }
