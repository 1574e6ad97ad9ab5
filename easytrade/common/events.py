"""
One-way notifications from the client to its presentation layer.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventName(str, Enum):
    LOGIN_SUCCESS = "login-success"
    WEB_SESSION_READY = "web-session-ready"
    LOGGED_OUT = "logged-out"
    NEEDS_TWO_FACTOR = "needs-two-factor"
    NEW_TRADE_OFFER = "new-trade-offer"
    NEW_GIFT_OFFER = "new-gift-offer"
    OFFER_STATE_CHANGED = "offer-state-changed"
    OFFER_ACCEPTED = "offer-accepted"
    OFFER_DECLINED = "offer-declined"
    GIFT_AUTO_ACCEPT_FAILED = "gift-auto-accept-failed"
    SESSION_EXPIRED = "session-expired"
    CONNECTION_LOST = "connection-lost"
    STEAM_ERROR = "steam-error"
    DISCONNECTED = "disconnected"
    RECONNECTION_FAILED = "reconnection-failed"


class Event(BaseModel):
    sequence: int
    name: EventName
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: float


EventCallback = Callable[[Event], None]


class EventBus:
    """Delivers events to subscribers in emission order.

    Subscribers are called synchronously, in subscription order. A bounded
    history is kept so that polling consumers can catch up with ``since``.
    """

    def __init__(self, buffer_size: int = 500):
        self._subscribers: list[EventCallback] = []
        self._history: deque[Event] = deque(maxlen=buffer_size)
        self._sequence = 0

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Register a subscriber and return a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, name: EventName, **payload: Any) -> Event:
        self._sequence += 1
        event = Event(
            sequence=self._sequence,
            name=name,
            payload=payload,
            timestamp=time.time(),
        )
        self._history.append(event)
        logger.debug("Event %s #%s: %s", name.value, event.sequence, payload)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber failed on %s", name.value)
        return event

    def since(self, sequence: int = 0) -> list[Event]:
        """Events newer than ``sequence`` still held in the history."""
        return [event for event in self._history if event.sequence > sequence]

    @property
    def last_sequence(self) -> int:
        return self._sequence
