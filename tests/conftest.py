from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from easytrade.client.application.offer_ingest import OfferIngest
from easytrade.client.application.session_guard import SessionGuard
from easytrade.client.domain.entities import RetryPolicy
from easytrade.common.events import Event, EventBus
from easytrade.common.interfaces import RemoteListener
from easytrade.common.models import (
    Credentials,
    LogOnOutcome,
    LogOnStatus,
    OfferFilter,
    OfferState,
)

GIFT_ITEM = {"appid": 730, "contextid": 2, "assetid": "5"}
OWN_ITEM = {"appid": 730, "contextid": 2, "assetid": "9"}


class FakeClock:
    """Monotonic clock whose sleep advances time instantly.

    Sleeps of a ``held`` length (the health check interval by default) never
    finish on their own; tests drive those ticks by calling the check directly.
    """

    def __init__(self, now: float = 10_000.0, held: tuple[float, ...] = (120,)):
        self.now = now
        self.held = held
        self.sleeps: list[float] = []
        self.held_sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        if delay in self.held:
            self.held_sleeps.append(delay)
            await asyncio.get_running_loop().create_future()
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class FakeOffer:
    def __init__(
        self,
        offer_id: str,
        items_to_give: list[dict[str, Any]] | None = None,
        items_to_receive: list[dict[str, Any]] | None = None,
        partner: str = "76561198000000001",
        message: str | None = None,
        state: int = OfferState.ACTIVE,
        fail_accept: bool = False,
    ):
        self.id = offer_id
        self.partner = partner
        self.items_to_give = items_to_give or []
        self.items_to_receive = items_to_receive or []
        self.message = message
        self.state = state
        self.fail_accept = fail_accept
        self.accept_calls = 0
        self.decline_calls = 0

    async def accept(self) -> str:
        self.accept_calls += 1
        await asyncio.sleep(0)
        if self.fail_accept:
            msg = "Trade offer accept failed"
            raise RuntimeError(msg)
        self.state = OfferState.ACCEPTED
        return "accepted"

    async def decline(self) -> None:
        self.decline_calls += 1
        await asyncio.sleep(0)
        self.state = OfferState.DECLINED


class FakeOfferManager:
    def __init__(self) -> None:
        self.listeners: list[RemoteListener] = []
        self.received: list[FakeOffer] = []
        self.get_offers_calls = 0
        self.fail_reads = False

    def subscribe(self, listener: RemoteListener) -> None:
        self.listeners.append(listener)

    def unsubscribe(self, listener: RemoteListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def get_offers(
        self, offer_filter: OfferFilter
    ) -> tuple[list[FakeOffer], list[FakeOffer]]:
        self.get_offers_calls += 1
        await asyncio.sleep(0)
        if self.fail_reads:
            msg = "HTTP error 503"
            raise ConnectionError(msg)
        if offer_filter is OfferFilter.ACTIVE_ONLY:
            return [], [o for o in self.received if o.state == OfferState.ACTIVE]
        return [], list(self.received)

    def get_offer(self, offer_id: str) -> FakeOffer | None:
        for offer in self.received:
            if offer.id == offer_id:
                return offer
        return None

    async def push_new_offer(self, offer: FakeOffer) -> None:
        for listener in list(self.listeners):
            await listener.on_new_offer(offer)

    async def push_offer_changed(self, offer: FakeOffer, previous_state: int) -> None:
        for listener in list(self.listeners):
            await listener.on_received_offer_changed(offer, previous_state)

    async def push_session_expired(self) -> None:
        for listener in list(self.listeners):
            await listener.on_session_expired()


class FakeRemoteClient:
    def __init__(self) -> None:
        self.connected = True
        self.offers = FakeOfferManager()
        self.listeners: list[RemoteListener] = []
        self.log_on_outcomes: list[LogOnOutcome] = []
        self.log_on_calls: list[tuple[str, str, str | None]] = []
        self.web_log_on_failures: list[Exception | None] = []
        self.web_log_on_calls = 0
        self.log_off_calls = 0

    def subscribe(self, listener: RemoteListener) -> None:
        self.listeners.append(listener)

    def unsubscribe(self, listener: RemoteListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def log_on(
        self, account_name: str, password: str, two_factor_code: str | None
    ) -> LogOnOutcome:
        self.log_on_calls.append((account_name, password, two_factor_code))
        await asyncio.sleep(0)
        if self.log_on_outcomes:
            return self.log_on_outcomes.pop(0)
        return LogOnOutcome(status=LogOnStatus.ACCEPTED, steam_id="76561198000000042")

    async def web_log_on(self) -> None:
        self.web_log_on_calls += 1
        await asyncio.sleep(0)
        if self.web_log_on_failures:
            failure = self.web_log_on_failures.pop(0)
            if failure is not None:
                raise failure

    async def log_off(self) -> None:
        self.log_off_calls += 1

    async def push_disconnected(self, eresult: int, message: str) -> None:
        for listener in list(self.listeners):
            await listener.on_disconnected(eresult, message)

    async def push_error(self, eresult: int, message: str) -> None:
        for listener in list(self.listeners):
            await listener.on_error(eresult, message)


class Recorder:
    """Collects events emitted on a bus."""

    def __init__(self, bus: EventBus):
        self.events: list[Event] = []
        bus.subscribe(self.events.append)

    def names(self) -> list[str]:
        return [event.name.value for event in self.events]


@pytest.fixture
def remote() -> FakeRemoteClient:
    return FakeRemoteClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(events: EventBus) -> Recorder:
    return Recorder(events)


@pytest.fixture
def guard(remote: FakeRemoteClient, clock: FakeClock, events: EventBus) -> SessionGuard:
    return SessionGuard(
        remote,
        events=events,
        retry_policy=RetryPolicy(max_attempts=5, backoff_base=2.0),
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def ingest(guard: SessionGuard) -> OfferIngest:
    return OfferIngest(guard)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="alice", password="hunter2")  # type: ignore[arg-type]


@pytest.fixture
def mafiles_dir(tmp_path: Path) -> Path:
    """Create a maFiles directory with one valid record."""
    directory = tmp_path / "mafiles"
    directory.mkdir()
    (directory / "alice.maFile").write_text(
        json.dumps(
            {
                "account_name": "alice",
                "shared_secret": "AAAA",
                "device_id": "android:1234",
                "Session": {"SteamID": 76561198000000042},
            }
        )
    )
    return directory
