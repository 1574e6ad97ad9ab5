"""
Interfaces and protocols for dependency injection.

The remote Steam client is a third-party collaborator. These protocols pin
down the narrow surface the trade client relies on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from easytrade.common.models import LogOnOutcome, OfferFilter


class RemoteListener:
    """Observer for push notifications from the remote client.

    The remote client awaits these coroutines (or schedules them as tasks) in
    delivery order. Subclasses override only what they care about.
    """

    async def on_disconnected(self, eresult: int, message: str | None) -> None:
        return None

    async def on_error(self, eresult: int, message: str | None) -> None:
        return None

    async def on_new_offer(self, offer: IRemoteOffer) -> None:
        return None

    async def on_received_offer_changed(
        self, offer: IRemoteOffer, previous_state: int
    ) -> None:
        return None

    async def on_session_expired(self) -> None:
        return None


class IRemoteOffer(Protocol):
    """Protocol for a trade offer object owned by the remote client."""

    id: str
    partner: str
    items_to_give: Sequence[Any]
    items_to_receive: Sequence[Any]
    message: str | None
    state: int

    async def accept(self) -> str: ...

    async def decline(self) -> None: ...


class IOfferManager(Protocol):
    """Protocol for the remote trade offer manager."""

    def subscribe(self, listener: RemoteListener) -> None: ...

    def unsubscribe(self, listener: RemoteListener) -> None: ...

    async def get_offers(
        self, offer_filter: OfferFilter
    ) -> tuple[Sequence[IRemoteOffer], Sequence[IRemoteOffer]]: ...

    def get_offer(self, offer_id: str) -> IRemoteOffer | None: ...


class IRemoteTradingClient(Protocol):
    """Protocol for the remote Steam client."""

    @property
    def connected(self) -> bool: ...

    @property
    def offers(self) -> IOfferManager: ...

    def subscribe(self, listener: RemoteListener) -> None: ...

    def unsubscribe(self, listener: RemoteListener) -> None: ...

    async def log_on(
        self, account_name: str, password: str, two_factor_code: str | None
    ) -> LogOnOutcome: ...

    async def web_log_on(self) -> None: ...

    async def log_off(self) -> None: ...


class ISecretStore(Protocol):
    """Protocol for one-time code lookup."""

    def generate_code(self, account_name: str) -> str | None: ...
