"""Domain layer: Core business entities and rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    """Lifecycle states of the supervised Steam session."""

    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    ESTABLISHING = "establishing"
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    RECOVERING = "recovering"
    FAILED = "failed"


# States in which a Session object exists
SESSION_STATES = frozenset(
    {SessionState.HEALTHY, SessionState.DEGRADED, SessionState.RECOVERING}
)


@dataclass
class Session:
    """Domain entity representing one authenticated connection."""

    identity: str
    established_at: float
    steam_id: str | None = None
    last_offer_observed_at: float | None = None
    auto_accept_gifts: bool = True

    def idle_for(self, now: float) -> float | None:
        """Seconds since the last observed offer, None if none was seen."""
        if self.last_offer_observed_at is None:
            return None
        return now - self.last_offer_observed_at


@dataclass(frozen=True)
class RetryPolicy:
    """Reconnect budget and backoff schedule."""

    max_attempts: int = 5
    backoff_base: float = 2.0
    delay_unit: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return self.delay_unit * self.backoff_base**attempt

    def exhausted(self, attempts: int) -> bool:
        return attempts >= self.max_attempts
