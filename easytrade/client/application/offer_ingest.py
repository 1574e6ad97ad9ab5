"""
Application layer: Incoming trade offers and the gift auto-accept policy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from easytrade.client.domain.entities import SessionState
from easytrade.common.events import EventBus, EventName
from easytrade.common.exceptions import OfferNotActive, OfferNotFound
from easytrade.common.interfaces import RemoteListener
from easytrade.common.models import OfferFilter, OfferState, TradeOffer

if TYPE_CHECKING:
    from easytrade.client.application.session_guard import SessionGuard
    from easytrade.common.interfaces import IOfferManager, IRemoteOffer

logger = logging.getLogger(__name__)


def state_name(state: int) -> str:
    try:
        return OfferState(state).name
    except ValueError:
        return str(state)


class OfferIngest(RemoteListener):
    """Keeps the working set of pending offers and applies offer policy."""

    def __init__(self, guard: SessionGuard, events: EventBus | None = None):
        self.guard = guard
        self.events = events or guard.events
        self._working_set: dict[str, IRemoteOffer] = {}
        self._seen: set[str] = set()
        self._auto_accepted: set[str] = set()
        self._in_flight: set[str] = set()
        self._subscribed = False

        guard.add_state_listener(self._on_session_state)

    @property
    def offers(self) -> IOfferManager:
        return self.guard.remote.offers

    @property
    def working_set(self) -> list[TradeOffer]:
        return [TradeOffer.from_remote(o) for o in list(self._working_set.values())]

    def _on_session_state(self, old: SessionState, new: SessionState) -> None:
        if new is SessionState.HEALTHY:
            self.activate()
        elif new in (SessionState.LOGGED_OUT, SessionState.FAILED):
            self.deactivate()

    def activate(self) -> None:
        """Start receiving offer notifications."""
        if self._subscribed:
            return
        self.offers.subscribe(self)
        self._subscribed = True
        logger.info("Listening for trade offers")

    def deactivate(self) -> None:
        """Stop receiving offer notifications and forget the working set."""
        if self._subscribed:
            self.offers.unsubscribe(self)
            self._subscribed = False
            logger.info("Stopped listening for trade offers")
        self._working_set.clear()
        self._seen.clear()
        self._auto_accepted.clear()
        self._in_flight.clear()

    # Push notifications

    async def on_new_offer(self, offer: IRemoteOffer) -> None:
        offer_id = str(offer.id)
        if offer_id in self._seen:
            logger.debug("Ignoring duplicate notification for offer %s", offer_id)
            return
        try:
            snapshot = TradeOffer.from_remote(offer)
        except ValidationError:
            logger.exception("Cannot read new offer %s", offer_id)
            raise
        self._seen.add(offer_id)
        self.guard.mark_offer_observed()
        self._working_set[offer_id] = offer

        if not snapshot.is_gift:
            logger.info("New trade offer %s from %s", offer_id, snapshot.partner)
            self.events.emit(
                EventName.NEW_TRADE_OFFER,
                **snapshot.model_dump(mode="json", exclude={"state", "is_gift"}),
            )
            return

        logger.info(
            "New gift offer %s from %s (%s items)",
            offer_id,
            snapshot.partner,
            len(snapshot.items_to_receive),
        )
        self.events.emit(
            EventName.NEW_GIFT_OFFER,
            **snapshot.model_dump(
                mode="json", include={"id", "partner", "items_to_receive", "message"}
            ),
        )
        if self.guard.auto_accept_gifts:
            await self._auto_accept(offer_id, offer)

    async def _auto_accept(self, offer_id: str, offer: IRemoteOffer) -> None:
        if offer_id in self._auto_accepted or offer_id in self._in_flight:
            logger.debug("Gift %s already handled", offer_id)
            return
        if offer.state != OfferState.ACTIVE:
            logger.info(
                "Gift %s is %s, not auto-accepting", offer_id, state_name(offer.state)
            )
            return
        self._auto_accepted.add(offer_id)
        self._in_flight.add(offer_id)
        try:
            status = await offer.accept()
        except Exception as e:
            logger.error("Failed to auto-accept gift %s: %s", offer_id, e)
            self.events.emit(
                EventName.GIFT_AUTO_ACCEPT_FAILED, id=offer_id, error=str(e)
            )
            return
        finally:
            self._in_flight.discard(offer_id)

        self._working_set.pop(offer_id, None)
        logger.info("Gift %s auto-accepted: %s", offer_id, status)
        self.events.emit(EventName.OFFER_ACCEPTED, id=offer_id, status=status, auto=True)

    async def on_received_offer_changed(
        self, offer: IRemoteOffer, previous_state: int
    ) -> None:
        offer_id = str(offer.id)
        old, new = state_name(previous_state), state_name(offer.state)
        logger.info("Offer %s changed state %s -> %s", offer_id, old, new)
        if offer.state != OfferState.ACTIVE:
            self._working_set.pop(offer_id, None)
            self._forget({offer_id})
        self.events.emit(
            EventName.OFFER_STATE_CHANGED, id=offer_id, old_state=old, new_state=new
        )

    def _forget(self, offer_ids: set[str]) -> None:
        """Drop dedupe bookkeeping for offers that left the Active state."""
        stale = offer_ids - self._in_flight
        self._seen -= stale
        self._auto_accepted -= stale

    # Commands

    def _claim(self, offer_id: str) -> IRemoteOffer:
        offer = self._working_set.get(offer_id)
        if offer is None:
            raise OfferNotFound(offer_id)
        if offer.state != OfferState.ACTIVE:
            msg = f"Offer {offer_id} is no longer active ({state_name(offer.state)})"
            raise OfferNotActive(msg)
        if offer_id in self._in_flight:
            msg = f"Offer {offer_id} already has an action in progress"
            raise OfferNotActive(msg)
        self._in_flight.add(offer_id)
        return offer

    async def accept(self, offer_id: str) -> str:
        """Accept a pending offer from the working set."""
        offer = self._claim(offer_id)
        try:
            status = await offer.accept()
        finally:
            self._in_flight.discard(offer_id)
        self._auto_accepted.add(offer_id)
        self._working_set.pop(offer_id, None)
        logger.info("Offer %s accepted: %s", offer_id, status)
        self.events.emit(EventName.OFFER_ACCEPTED, id=offer_id, status=status)
        return status

    async def decline(self, offer_id: str) -> None:
        """Decline a pending offer from the working set."""
        offer = self._claim(offer_id)
        try:
            await offer.decline()
        finally:
            self._in_flight.discard(offer_id)
        self._working_set.pop(offer_id, None)
        logger.info("Offer %s declined", offer_id)
        self.events.emit(EventName.OFFER_DECLINED, id=offer_id)

    async def list_pending(
        self, offer_filter: OfferFilter = OfferFilter.ACTIVE_ONLY
    ) -> list[TradeOffer]:
        """Query the remote for received offers and refresh the working set."""
        _, received = await self.offers.get_offers(offer_filter)
        received = list(received)
        if offer_filter is OfferFilter.ACTIVE_ONLY:
            self._working_set = {str(o.id): o for o in received}
            self._forget((self._seen | self._auto_accepted) - set(self._working_set))
        else:
            for o in received:
                if o.state == OfferState.ACTIVE:
                    self._working_set[str(o.id)] = o
        logger.debug("Fetched %s received offers", len(received))
        return [TradeOffer.from_remote(o) for o in received]
