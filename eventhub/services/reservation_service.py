"""Seat reservation: admission control for joining and leaving events.

Joining runs cheap checks against a possibly stale read first and then
commits through the store's conditional append, which re-checks
membership and capacity at the store's commit instant. Only that commit
decides admission; the pre-checks merely produce precise rejections
early.
"""

import math
from datetime import datetime
from typing import Any, Dict

from loguru import logger

from eventhub.database.event_store import AttendeeListContentionError, STORE_ERRORS
from eventhub.exceptions import (
    AlreadyReservedError,
    AtCapacityError,
    EventExpiredError,
    InternalError,
    NotFoundError,
    NotReservedError,
    ReservationConflictError,
    RsvpWindowNotOpenError,
)
from eventhub.schemas.event import EventOut
from eventhub.services.event_service import RSVP_RESPECT_TIME, to_event_out
from eventhub.utils import parse_iso


def rsvp_open_at(event: Dict[str, Any]) -> datetime:
    """When reservations open; legacy events without rsvpOpenAt use createdAt"""
    if event.get("rsvpOpenAt"):
        return parse_iso(event["rsvpOpenAt"])
    return parse_iso(event["createdAt"]) + RSVP_RESPECT_TIME


def seconds_until(moment: datetime, now: datetime) -> int:
    return math.ceil((moment - now).total_seconds())


class ReservationService:
    def __init__(self, event_store):
        self.store = event_store

    def try_reserve(self, event_id: str, user_id: str, now: datetime) -> EventOut:
        """Admit user_id to the event or raise the reason it was refused"""
        try:
            event = self.store.get_event(event_id)
            if event is None:
                raise NotFoundError()

            if parse_iso(event["date"]) < now:
                raise EventExpiredError()

            open_at = rsvp_open_at(event)
            if now < open_at:
                raise RsvpWindowNotOpenError(seconds_until(open_at, now))

            if user_id in event["attendees"]:
                raise AlreadyReservedError()
            if len(event["attendees"]) >= event["capacity"]:
                raise AtCapacityError()

            if not self.store.add_attendee(event_id, user_id):
                logger.warning(f"User {user_id} lost the commit race on event {event_id}")
                raise ReservationConflictError()

            logger.info(f"User {user_id} reserved a seat on event {event_id}")
            updated = self.store.get_event(event_id)
        except STORE_ERRORS as e:
            logger.exception(f"Reservation of event {event_id} by {user_id} failed")
            raise InternalError() from e

        if updated is None:
            raise NotFoundError()
        return to_event_out(updated)

    def cancel(self, event_id: str, user_id: str) -> EventOut:
        """Give up user_id's seat; allowed at any time"""
        try:
            event = self.store.get_event(event_id)
            if event is None:
                raise NotFoundError()
            if user_id not in event["attendees"]:
                raise NotReservedError()
            if not self.store.remove_attendee(event_id, user_id):
                raise NotReservedError()

            logger.info(f"User {user_id} cancelled their seat on event {event_id}")
            updated = self.store.get_event(event_id)
        except STORE_ERRORS + (AttendeeListContentionError,) as e:
            logger.exception(f"Cancellation of event {event_id} by {user_id} failed")
            raise InternalError() from e

        if updated is None:
            raise NotFoundError()
        return to_event_out(updated)
