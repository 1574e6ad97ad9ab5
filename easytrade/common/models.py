"""
Pydantic models for offers, authenticator records and command payloads.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    computed_field,
    field_validator,
)


class EResult(IntEnum):
    """Subset of Steam EResult codes the client reacts to."""

    OK = 1
    FAIL = 2
    NO_CONNECTION = 3
    INVALID_PASSWORD = 5
    LOGGED_IN_ELSEWHERE = 6
    SERVICE_UNAVAILABLE = 20
    ACCOUNT_LOGON_DENIED = 63
    RATE_LIMIT_EXCEEDED = 84
    ACCOUNT_LOGIN_DENIED_NEED_TWO_FACTOR = 85
    TWO_FACTOR_CODE_MISMATCH = 88


TWO_FACTOR_RESULTS = frozenset(
    {
        EResult.ACCOUNT_LOGON_DENIED,
        EResult.ACCOUNT_LOGIN_DENIED_NEED_TWO_FACTOR,
        EResult.TWO_FACTOR_CODE_MISMATCH,
    }
)


class OfferState(IntEnum):
    INVALID = 1
    ACTIVE = 2
    ACCEPTED = 3
    COUNTERED = 4
    EXPIRED = 5
    CANCELED = 6
    DECLINED = 7
    INVALID_ITEMS = 8
    CREATED_NEEDS_CONFIRMATION = 9
    CANCELED_BY_SECOND_FACTOR = 10
    IN_ESCROW = 11


class OfferFilter(IntEnum):
    ACTIVE_ONLY = 1
    HISTORICAL_ONLY = 2
    ALL = 3


class ItemRef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    appid: int
    contextid: str
    assetid: str

    @field_validator("contextid", "assetid", mode="before")
    @classmethod
    def _as_string(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class TradeOffer(BaseModel):
    """Snapshot of a remote trade offer."""

    id: str
    partner: str
    items_to_give: list[ItemRef] = Field(default_factory=list)
    items_to_receive: list[ItemRef] = Field(default_factory=list)
    message: str | None = None
    state: int = OfferState.ACTIVE

    @field_validator("state")
    @classmethod
    def _known_state(cls, value: int) -> int:
        # Newer remote states pass through as plain ints
        try:
            return OfferState(value)
        except ValueError:
            return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_gift(self) -> bool:
        return not self.items_to_give and bool(self.items_to_receive)

    @classmethod
    def from_remote(cls, offer: Any) -> TradeOffer:
        """Build a snapshot from an object satisfying IRemoteOffer."""
        return cls(
            id=str(offer.id),
            partner=str(offer.partner),
            items_to_give=list(offer.items_to_give),
            items_to_receive=list(offer.items_to_receive),
            message=offer.message or None,
            state=offer.state,
        )


class AuthenticatorRecord(BaseModel):
    account_name: str
    shared_secret: SecretStr
    steam_id: str | None = None
    device_id: str | None = None
    filename: str

    @field_validator("steam_id", mode="before")
    @classmethod
    def _steam_id_as_string(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class Credentials(BaseModel):
    username: str = Field(min_length=1)
    password: SecretStr
    two_factor_code: str | None = None


class LogOnStatus(str, Enum):
    ACCEPTED = "accepted"
    NEEDS_TWO_FACTOR = "needs_two_factor"
    REJECTED = "rejected"


class LogOnOutcome(BaseModel):
    status: LogOnStatus
    reason: str | None = None
    steam_id: str | None = None

    @classmethod
    def from_eresult(cls, code: int, message: str | None = None) -> LogOnOutcome:
        """Classify a Steam log-on result code."""
        if code == EResult.OK:
            return cls(status=LogOnStatus.ACCEPTED)
        if code in TWO_FACTOR_RESULTS:
            return cls(status=LogOnStatus.NEEDS_TWO_FACTOR, reason=message)
        return cls(status=LogOnStatus.REJECTED, reason=message or "Login failed")


class ClientConfig(BaseModel):
    health_check_interval: float | None = None
    offer_recency_window: float | None = None
    disconnect_grace: float | None = None
    rate_limit_cooldown: float | None = None
    max_reconnect_attempts: int | None = None
    backoff_base: float | None = None
    backoff_unit: float | None = None
    auto_accept_gifts: bool | None = None
    event_buffer_size: int | None = None
    mafiles_dir: Path | None = None
    log_level: int | None = None
    log_file: Path | None = None
