from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from easytrade import SessionState, TradeClient
from easytrade.common.models import ClientConfig

from .conftest import GIFT_ITEM, FakeClock, FakeOffer, FakeRemoteClient


class FixedTimeSync:
    def query_offset(self) -> float:
        return 0.0


@pytest.fixture
def client(
    remote: FakeRemoteClient, clock: FakeClock, mafiles_dir: Path
) -> TradeClient:
    """Create a TradeClient over the fake remote."""
    return TradeClient(
        remote,
        client_config=ClientConfig(mafiles_dir=mafiles_dir, max_reconnect_attempts=2),
        time_sync=FixedTimeSync(),  # type: ignore[arg-type]
        clock=clock,
        sleep=clock.sleep,
    )


def test_client_initialization(client: TradeClient) -> None:
    """Test client wiring and initial state."""
    assert client.guard.state is SessionState.LOGGED_OUT
    assert [r.account_name for r in client.secret_store.records] == ["alice"]
    assert client.guard.retry_policy.max_attempts == 2  # noqa: PLR2004
    assert client.ingest.events is client.events


def test_clients_are_independent(remote: FakeRemoteClient, mafiles_dir: Path) -> None:
    first = TradeClient(remote, ClientConfig(mafiles_dir=mafiles_dir))
    second = TradeClient(FakeRemoteClient(), ClientConfig(mafiles_dir=mafiles_dir))
    assert first.events is not second.events
    assert first.guard is not second.guard


def test_login_and_gift_flow(
    client: TradeClient, remote: FakeRemoteClient
) -> None:
    """Test a login with a generated code followed by a gift."""
    gift = FakeOffer("900", items_to_receive=[GIFT_ITEM])

    async def scenario() -> dict:
        login = await client.commands.login({"username": "alice", "password": "pw"})
        await remote.offers.push_new_offer(gift)
        await client.close()
        return login

    login = asyncio.run(scenario())

    assert login["success"] is True
    assert remote.log_on_calls[0][2] is not None
    assert gift.accept_calls == 1
    names = [e.name.value for e in client.events.since()]
    assert names == [
        "login-success",
        "web-session-ready",
        "new-gift-offer",
        "offer-accepted",
        "logged-out",
    ]
    assert remote.listeners == []
    assert remote.offers.listeners == []


def test_exhausted_recovery_requires_new_login(
    client: TradeClient, remote: FakeRemoteClient, clock: FakeClock
) -> None:
    async def scenario() -> tuple[dict, dict]:
        await client.commands.login({"username": "alice", "password": "pw"})
        remote.web_log_on_failures.extend([RuntimeError("down")] * 2)
        await remote.offers.push_session_expired()
        await client.guard.wait_settled()
        offers = await client.commands.get_pending_offers()
        relogin = await client.commands.login({"username": "alice", "password": "pw"})
        return offers, relogin

    offers, relogin = asyncio.run(scenario())

    assert clock.sleeps == [2, 4]
    assert offers["error_type"] == "RecoveryExhausted"
    assert relogin["success"] is True
    assert client.guard.state is SessionState.HEALTHY
