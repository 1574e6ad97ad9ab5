"""
Command surface exposed to the presentation layer.

Every command returns a dict with a ``success`` flag; failures carry
``error`` and ``error_type`` instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from easytrade.common.decorators import command_result, error_result, requires_session
from easytrade.common.exceptions import SecretUnavailable, TradeClientError
from easytrade.common.models import AuthenticatorRecord, Credentials

if TYPE_CHECKING:
    from easytrade.client.application.offer_ingest import OfferIngest
    from easytrade.client.application.session_guard import SessionGuard
    from easytrade.client.infrastructure.secret_store import SecretStore
    from easytrade.client.infrastructure.time_sync import TimeSync

logger = logging.getLogger(__name__)


def record_view(record: AuthenticatorRecord) -> dict[str, Any]:
    return record.model_dump(mode="json", exclude={"shared_secret"})


class CommandSurface:
    """Translates UI commands into session, offer and secret operations."""

    def __init__(
        self,
        guard: SessionGuard,
        ingest: OfferIngest,
        secret_store: SecretStore,
        time_sync: TimeSync | None = None,
    ):
        self.guard = guard
        self.ingest = ingest
        self.secret_store = secret_store
        self.time_sync = time_sync

    # Session

    @command_result
    async def login(self, credentials: Credentials | dict[str, Any]) -> dict[str, Any]:
        if not isinstance(credentials, Credentials):
            credentials = Credentials.model_validate(credentials)
        session = await self.guard.login(credentials)
        return {"username": session.identity, "steam_id": session.steam_id}

    @command_result
    async def logout(self) -> dict[str, Any]:
        await self.guard.logout()
        return {}

    @command_result
    async def get_status(self) -> dict[str, Any]:
        return {**self.guard.status(), "pending_offers": len(self.ingest.working_set)}

    @command_result
    async def check_connection_status(self) -> dict[str, Any]:
        try:
            self.guard.ensure_session()
        except TradeClientError as e:
            # Own success flag: the result must still say it is not connected
            return {**error_result(e), "connected": False}

        client_connected = self.guard.remote.connected
        test_ok = await self.guard.probe()
        if test_ok:
            connection_status = "fully_connected"
        elif client_connected:
            connection_status = "client_connected"
        else:
            connection_status = "connection_test_failed"

        status = self.guard.status()
        return {
            "connected": test_ok or client_connected,
            "connection_status": connection_status,
            "state": status["state"],
            "idle_seconds": status["idle_seconds"],
        }

    @command_result
    async def force_reconnect(self) -> dict[str, Any]:
        if self.guard.force_reconnect():
            return {"message": "Reconnection attempt initiated"}
        return {"message": "Reconnection already in progress"}

    # Offers

    @command_result
    @requires_session()
    async def accept_offer(self, offer_id: str) -> dict[str, Any]:
        status = await self.ingest.accept(offer_id)
        return {"id": offer_id, "status": status}

    @command_result
    @requires_session()
    async def decline_offer(self, offer_id: str) -> dict[str, Any]:
        await self.ingest.decline(offer_id)
        return {"id": offer_id}

    @command_result
    @requires_session()
    async def get_pending_offers(self) -> dict[str, Any]:
        offers = await self.ingest.list_pending()
        return {"offers": [offer.model_dump(mode="json") for offer in offers]}

    @command_result
    async def toggle_auto_accept_gifts(self) -> dict[str, Any]:
        self.guard.auto_accept_gifts = not self.guard.auto_accept_gifts
        logger.info("Auto-accept gifts set to %s", self.guard.auto_accept_gifts)
        return {"auto_accept_gifts": self.guard.auto_accept_gifts}

    @command_result
    async def get_auto_accept_setting(self) -> dict[str, Any]:
        return {"auto_accept_gifts": self.guard.auto_accept_gifts}

    # Secrets

    @command_result
    async def scan_secrets(self) -> dict[str, Any]:
        records = await asyncio.to_thread(self.secret_store.scan)
        return {"mafiles": [record_view(r) for r in records]}

    @command_result
    async def get_secrets(self) -> dict[str, Any]:
        return {"mafiles": [record_view(r) for r in self.secret_store.records]}

    @command_result
    async def check_secret_available(self, account_name: str) -> dict[str, Any]:
        record = self.secret_store.find_by_account(account_name)
        return {
            "available": record is not None,
            "mafile": record_view(record) if record else None,
        }

    @command_result
    async def generate_code_for_account(self, account_name: str) -> dict[str, Any]:
        record = self.secret_store.find_by_account(account_name)
        if record is None:
            msg = "No maFile found for this account"
            raise SecretUnavailable(msg)
        code = self.secret_store.generate_code(account_name)
        if code is None:
            msg = "Failed to generate Steam Guard code from maFile"
            raise SecretUnavailable(msg)
        return {
            "account": record.account_name,
            "steam_guard_code": code,
            "requires_password": True,
        }

    @command_result
    async def sync_time(self) -> dict[str, Any]:
        if self.time_sync is None:
            msg = "Time sync is not configured"
            raise TradeClientError(msg)
        offset = await asyncio.to_thread(self.secret_store.align_time, self.time_sync)
        return {"time_offset": offset}
