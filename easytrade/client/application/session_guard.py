"""
Application layer: Supervision of the authenticated Steam session.

The guard owns the whole session lifecycle: login, the web session handshake,
health checks, reconnection with backoff and logout. It is the only writer of
the session state; other components observe it through state listeners.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from easytrade.client.application.health_monitor import HealthMonitor
from easytrade.client.domain.entities import (
    SESSION_STATES,
    RetryPolicy,
    Session,
    SessionState,
)
from easytrade.common.events import EventBus, EventName
from easytrade.common.exceptions import (
    AuthRejected,
    HandshakeFailed,
    LoginAborted,
    NotLoggedIn,
    RateLimitError,
    RecoveryExhausted,
    SessionExpired,
    TradeClientError,
    TransportDisconnected,
    TwoFactorRequired,
)
from easytrade.common.interfaces import RemoteListener
from easytrade.common.models import EResult, LogOnStatus, OfferFilter

if TYPE_CHECKING:
    from easytrade.common.interfaces import IRemoteTradingClient, ISecretStore
    from easytrade.common.models import Credentials

StateListener = Callable[[SessionState, SessionState], None]

logger = logging.getLogger(__name__)


class SessionGuard(RemoteListener):
    """Owns the session state machine."""

    def __init__(  # noqa: PLR0913
        self,
        remote: IRemoteTradingClient,
        secret_store: ISecretStore | None = None,
        events: EventBus | None = None,
        retry_policy: RetryPolicy | None = None,
        health_check_interval: float = 120,
        offer_recency_window: float = 300,
        disconnect_grace: float = 5,
        rate_limit_cooldown: float = 60,
        auto_accept_gifts: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.remote = remote
        self.secret_store = secret_store
        self.events = events or EventBus()
        self.retry_policy = retry_policy or RetryPolicy()
        self.offer_recency_window = offer_recency_window
        self.disconnect_grace = disconnect_grace
        self.rate_limit_cooldown = rate_limit_cooldown
        self.clock = clock
        self.sleep = sleep

        self.state: SessionState = SessionState.LOGGED_OUT
        self.session: Session | None = None
        self.reconnect_attempts: int = 0
        self.monitor = HealthMonitor(
            self.check_health, health_check_interval, sleep=sleep
        )
        self.last_error: TradeClientError | None = None

        self._auto_accept_gifts = auto_accept_gifts
        self._state_listeners: list[StateListener] = []
        self._epoch = 0  # bumped by login and logout; stale results compare unequal
        self._cooldown_until: float = 0.0
        self._grace_task: asyncio.Task[None] | None = None
        self._recovery_task: asyncio.Task[None] | None = None

        self.remote.subscribe(self)
        self.remote.offers.subscribe(self)

    # State bookkeeping

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with (old, new) on every transition."""
        self._state_listeners.append(listener)

    def _set_state(self, new: SessionState) -> None:
        old = self.state
        if old is new:
            return
        self.state = new
        logger.info("Session state %s -> %s", old.value, new.value)

        if new is SessionState.HEALTHY:
            self.reconnect_attempts = 0
            self.last_error = None
            self.monitor.start()
        else:
            self.monitor.stop()

        for listener in list(self._state_listeners):
            try:
                listener(old, new)
            except Exception:
                logger.exception("State listener failed on %s", new.value)

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self._epoch

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        return asyncio.ensure_future(coro)

    @staticmethod
    def _cancel(task: asyncio.Task[None] | None) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    @property
    def auto_accept_gifts(self) -> bool:
        if self.session is not None:
            return self.session.auto_accept_gifts
        return self._auto_accept_gifts

    @auto_accept_gifts.setter
    def auto_accept_gifts(self, value: bool) -> None:
        self._auto_accept_gifts = value
        if self.session is not None:
            self.session.auto_accept_gifts = value

    def ensure_session(self) -> Session:
        """Return the live session or raise why there is none."""
        if self.state is SessionState.FAILED:
            raise RecoveryExhausted
        if self.session is None or self.state not in SESSION_STATES:
            raise NotLoggedIn
        return self.session

    def mark_offer_observed(self) -> None:
        """Record organic activity proving the connection works."""
        if self.session is not None:
            self.session.last_offer_observed_at = self.clock()

    def status(self) -> dict[str, Any]:
        session = self.session
        return {
            "state": self.state.value,
            "account": session.identity if session else None,
            "steam_id": session.steam_id if session else None,
            "reconnect_attempts": self.reconnect_attempts,
            "idle_seconds": session.idle_for(self.clock()) if session else None,
            "auto_accept_gifts": self.auto_accept_gifts,
            "last_error": str(self.last_error) if self.last_error else None,
            "last_error_type": (
                type(self.last_error).__name__ if self.last_error else None
            ),
        }

    # Login and logout

    async def login(self, credentials: Credentials) -> Session:
        """Log on, complete the web session handshake and become healthy."""
        if self.state not in (SessionState.LOGGED_OUT, SessionState.FAILED):
            logger.info("New login supersedes the current session")
            await self.logout()

        self._epoch += 1
        epoch = self._epoch
        username = credentials.username

        code = credentials.two_factor_code
        if not code and self.secret_store is not None:
            code = self.secret_store.generate_code(username)
            if code:
                logger.info("Auto-generated Steam Guard code for %s", username)
        logger.info(
            "Attempting login for %s with Steam Guard code: %s",
            username,
            "yes" if code else "no",
        )

        self._set_state(SessionState.AUTHENTICATING)
        try:
            outcome = await self.remote.log_on(
                username, credentials.password.get_secret_value(), code
            )
        except Exception as e:
            self._abandon_login(epoch)
            logger.warning("Login error for %s: %s", username, e)
            if isinstance(e, TradeClientError):
                raise
            raise AuthRejected(str(e) or "Login failed") from e
        self._abandon_login_if_stale(epoch)

        if outcome.status is LogOnStatus.NEEDS_TWO_FACTOR:
            self._set_state(SessionState.LOGGED_OUT)
            logger.warning("Steam Guard code required for %s", username)
            self.events.emit(EventName.NEEDS_TWO_FACTOR, username=username)
            raise TwoFactorRequired
        if outcome.status is LogOnStatus.REJECTED:
            self._set_state(SessionState.LOGGED_OUT)
            reason = outcome.reason or "Login failed"
            logger.warning("Login rejected for %s: %s", username, reason)
            raise AuthRejected(reason)

        logger.info("Successfully logged on to Steam for %s", username)
        self.events.emit(
            EventName.LOGIN_SUCCESS, username=username, steam_id=outcome.steam_id
        )
        self._set_state(SessionState.ESTABLISHING)

        try:
            await self.remote.web_log_on()
        except Exception as e:
            logger.error("Web session handshake failed for %s: %s", username, e)
            if not self._is_stale(epoch):
                await self._log_off_quietly()
            self._abandon_login(epoch)
            raise HandshakeFailed(f"Failed to establish web session: {e}") from e
        self._abandon_login_if_stale(epoch)

        self.session = Session(
            identity=username,
            established_at=self.clock(),
            steam_id=outcome.steam_id,
            auto_accept_gifts=self._auto_accept_gifts,
        )
        self._set_state(SessionState.HEALTHY)
        logger.info("Web session established for %s", username)
        self.events.emit(
            EventName.WEB_SESSION_READY, username=username, steam_id=outcome.steam_id
        )
        return self.session

    def _abandon_login(self, epoch: int) -> None:
        if self._is_stale(epoch):
            raise LoginAborted
        self._set_state(SessionState.LOGGED_OUT)

    def _abandon_login_if_stale(self, epoch: int) -> None:
        if self._is_stale(epoch):
            logger.info("Discarding result of a cancelled login")
            raise LoginAborted

    async def logout(self) -> None:
        """Drop the session immediately, cancelling any recovery in flight."""
        previous = self.state
        self._epoch += 1
        self._cancel(self._grace_task)
        self._cancel(self._recovery_task)
        self._grace_task = None
        self._recovery_task = None
        self._cooldown_until = 0.0
        self.session = None
        self.reconnect_attempts = 0
        self.last_error = None
        self._set_state(SessionState.LOGGED_OUT)

        if previous is not SessionState.LOGGED_OUT:
            await self._log_off_quietly()
        logger.info("Logged out")
        self.events.emit(EventName.LOGGED_OUT)

    async def _log_off_quietly(self) -> None:
        try:
            await self.remote.log_off()
        except Exception as e:
            logger.warning("Steam log off failed: %s", e)

    # Liveness

    async def probe(self) -> bool:
        """Issue a lightweight read; True when the remote answered."""
        try:
            _, received = await self.remote.offers.get_offers(OfferFilter.ACTIVE_ONLY)
        except Exception as e:
            logger.info("Connection test failed: %s", e)
            return False
        logger.debug("Connection test ok, %s active offers", len(received))
        return True

    async def check_health(self) -> None:
        """One health monitor tick.

        Probing is skipped while a recent offer proves the connection works.
        Recovery starts only when the probe fails and the transport also
        reports itself disconnected.
        """
        if self.state is not SessionState.HEALTHY or self.session is None:
            return
        idle = self.session.idle_for(self.clock())
        if idle is not None and idle < self.offer_recency_window:
            logger.debug("Offer observed %.0fs ago, skipping probe", idle)
            return

        epoch = self._epoch
        ok = await self.probe()
        if self._is_stale(epoch) or self.state is not SessionState.HEALTHY:
            logger.debug("Discarding stale health probe result")
            return
        if ok:
            return
        if self.remote.connected:
            logger.info("Connection test failed but transport is up, not reconnecting")
            return

        logger.warning("Connection appears lost, attempting to reconnect")
        self.events.emit(EventName.CONNECTION_LOST)
        self._begin_recovery(
            TransportDisconnected("Connection test failed and transport is down")
        )

    # Remote notifications

    async def on_session_expired(self) -> None:
        if self.state not in (SessionState.HEALTHY, SessionState.DEGRADED):
            logger.debug("Ignoring session expiry while %s", self.state.value)
            return
        logger.warning("Web session expired, attempting to reconnect")
        self.events.emit(EventName.SESSION_EXPIRED)
        self._begin_recovery(SessionExpired())

    async def on_disconnected(self, eresult: int, message: str | None) -> None:
        logger.warning("Disconnected from Steam: %s %s", eresult, message)
        self.events.emit(EventName.DISCONNECTED, eresult=eresult, message=message)
        if self.state is not SessionState.HEALTHY:
            return
        self.last_error = TransportDisconnected(message or "Disconnected from Steam")
        self._set_state(SessionState.DEGRADED)
        self._cancel(self._grace_task)
        self._grace_task = self._spawn(self._recover_after_grace(self._epoch))

    async def on_error(self, eresult: int, message: str | None) -> None:
        logger.error("Steam client error: %s (eresult %s)", message, eresult)
        self.events.emit(EventName.STEAM_ERROR, eresult=eresult, error=message)
        if eresult == EResult.RATE_LIMIT_EXCEEDED:
            self.last_error = RateLimitError(message or "Rate limit exceeded")
            self._cooldown_until = self.clock() + self.rate_limit_cooldown
            logger.warning(
                "Rate limit exceeded, pausing retries for %ss", self.rate_limit_cooldown
            )

    async def _recover_after_grace(self, epoch: int) -> None:
        await self.sleep(self.disconnect_grace)
        if self._is_stale(epoch) or self.state is not SessionState.DEGRADED:
            return
        if self.remote.connected:
            logger.info("Transport came back during the grace period")
            self._set_state(SessionState.HEALTHY)
            return
        self._begin_recovery(TransportDisconnected())

    # Recovery

    def force_reconnect(self) -> bool:
        """Start recovery on request; False when one is already running."""
        self.ensure_session()
        if self.state is SessionState.RECOVERING:
            logger.info("Reconnection already in progress")
            return False
        logger.info("Force reconnection requested")
        return self._begin_recovery(None)

    def _begin_recovery(self, cause: TradeClientError | None) -> bool:
        reason = cause or "requested by user"
        if self.state is SessionState.RECOVERING:
            logger.debug("Recovery already in progress, ignoring %s", reason)
            return False
        if self.session is None:
            return False
        self._cancel(self._grace_task)
        self._grace_task = None
        self._set_state(SessionState.RECOVERING)
        self.reconnect_attempts = 0
        if cause is not None:
            self.last_error = cause
        logger.info("Starting recovery: %s", reason)
        self._recovery_task = self._spawn(self._recover(self._epoch))
        return True

    async def _wait_for_cooldown(self) -> None:
        while True:
            remaining = self._cooldown_until - self.clock()
            if remaining <= 0:
                return
            logger.info("Waiting %.0fs for rate limit cooldown", remaining)
            await self.sleep(remaining)

    async def _recover(self, epoch: int) -> None:
        policy = self.retry_policy
        while True:
            await self._wait_for_cooldown()
            if self._is_stale(epoch) or self.state is not SessionState.RECOVERING:
                return

            attempt = self.reconnect_attempts + 1
            logger.info("Reconnection attempt %s/%s", attempt, policy.max_attempts)
            try:
                await self.remote.web_log_on()
            except Exception as e:
                if self._is_stale(epoch):
                    return
                self.reconnect_attempts = attempt
                delay = policy.delay_for(attempt)
                logger.warning(
                    "Reconnection attempt %s failed: %s (waiting %.0fs)",
                    attempt,
                    e,
                    delay,
                )
                await self.sleep(delay)
                if self._is_stale(epoch) or self.state is not SessionState.RECOVERING:
                    return
                if policy.exhausted(self.reconnect_attempts):
                    await self._log_off_quietly()
                    if self._is_stale(epoch):
                        return
                    self._fail()
                    return
                continue

            if self._is_stale(epoch) or self.state is not SessionState.RECOVERING:
                return
            self._set_state(SessionState.HEALTHY)
            assert self.session is not None
            logger.info("Reconnected to Steam as %s", self.session.identity)
            self.events.emit(
                EventName.WEB_SESSION_READY,
                username=self.session.identity,
                steam_id=self.session.steam_id,
                reconnected=True,
            )
            return

    def _fail(self) -> None:
        identity = self.session.identity if self.session else None
        self.session = None
        self._set_state(SessionState.FAILED)
        logger.error(
            "Max reconnection attempts reached for %s after %s tries",
            identity,
            self.reconnect_attempts,
        )
        self.events.emit(
            EventName.RECONNECTION_FAILED,
            username=identity,
            attempts=self.reconnect_attempts,
        )

    async def wait_settled(self) -> None:
        """Wait until no grace or recovery task is pending."""
        while True:
            pending = [
                task
                for task in (self._grace_task, self._recovery_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Detach from the remote client and stop all background work."""
        if self.state is not SessionState.LOGGED_OUT:
            await self.logout()
        self.monitor.stop()
        self.remote.unsubscribe(self)
        self.remote.offers.unsubscribe(self)
