import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from loguru import logger

from eventhub.database.event_store import STORE_ERRORS
from eventhub.exceptions import (
    CapacityBelowAttendanceError,
    DomainError,
    ForbiddenError,
    InternalError,
    NotFoundError,
)
from eventhub.schemas.event import EventForm, EventOut
from eventhub.services.image_storage import ImageStorage
from eventhub.utils import to_iso


# Head start the creator gets before reservations open. Events stored
# without rsvpOpenAt fall back to createdAt + this value.
RSVP_RESPECT_TIME = timedelta(seconds=60)


def to_event_out(event: Dict[str, Any]) -> EventOut:
    attendees = list(event.get("attendees", []))
    return EventOut(
        id=event["id"],
        title=event["title"],
        description=event["description"],
        date=event["date"],
        location=event["location"],
        capacity=int(event["capacity"]),
        attendees=attendees,
        attendeeCount=len(attendees),
        creator=event["creator"],
        createdAt=event["createdAt"],
        rsvpOpenAt=event.get("rsvpOpenAt"),
        image=event.get("image", ""),
    )


class EventService:
    def __init__(self, event_store, image_storage: Optional[ImageStorage] = None):
        self.store = event_store
        self.images = image_storage

    def create_event(
        self,
        creator: str,
        form_data: Dict[str, Any],
        now: datetime,
        image: Optional[UploadFile] = None,
    ) -> EventOut:
        """Validate and store a new event; RSVP opens one respect time after now"""
        image_ref = self._save_image(image)
        try:
            form = EventForm.from_form(form_data)
            event_id = str(uuid.uuid4())
            event = {
                "id": event_id,
                "title": form.title,
                "description": form.description,
                "date": to_iso(form.date),
                "location": form.location,
                "capacity": form.capacity,
                "attendees": [],
                "creator": creator,
                "createdAt": to_iso(now),
                "rsvpOpenAt": to_iso(now + RSVP_RESPECT_TIME),
                "image": image_ref,
            }
            self.store.put_event(event)
        except DomainError:
            self._delete_image(image_ref)
            raise
        except STORE_ERRORS as e:
            self._delete_image(image_ref)
            logger.exception(f"Failed to create event for {creator}")
            raise InternalError() from e

        logger.info(f"Event {event_id} created by {creator} (capacity {form.capacity})")
        return to_event_out(event)

    def get_event(self, event_id: str) -> EventOut:
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFoundError()
        return to_event_out(event)

    def update_event(
        self,
        event_id: str,
        user_id: str,
        form_data: Dict[str, Any],
        image: Optional[UploadFile] = None,
    ) -> EventOut:
        """
        Replace the editable fields of an event owned by user_id.
        A newly uploaded image replaces the old one; on any rejection the
        new upload is removed again.
        """
        image_ref = self._save_image(image)
        try:
            form = EventForm.from_form(form_data)
            event = self.store.get_event(event_id)
            if event is None:
                raise NotFoundError()
            if event["creator"] != user_id:
                raise ForbiddenError("Not authorized to update this event")
            if form.capacity < len(event["attendees"]):
                raise CapacityBelowAttendanceError(len(event["attendees"]))

            fields = {
                "title": form.title,
                "description": form.description,
                "date": to_iso(form.date),
                "location": form.location,
                "capacity": form.capacity,
            }
            if image_ref:
                fields["image"] = image_ref

            updated = self.store.update_details(event_id, user_id, fields)
            if updated is None:
                self._raise_update_rejection(event_id, user_id)
        except DomainError:
            self._delete_image(image_ref)
            raise
        except STORE_ERRORS as e:
            self._delete_image(image_ref)
            logger.exception(f"Failed to update event {event_id}")
            raise InternalError() from e

        if image_ref and event.get("image"):
            self._delete_image(event["image"])
        logger.info(f"Event {event_id} updated by {user_id}")
        return to_event_out(updated)

    def delete_event(self, event_id: str, user_id: str) -> None:
        """Delete an event owned by user_id together with its image"""
        try:
            event = self.store.get_event(event_id)
            if event is None:
                raise NotFoundError()
            if event["creator"] != user_id:
                raise ForbiddenError("Not authorized to delete this event")
            if not self.store.delete_event(event_id, user_id):
                raise NotFoundError()
        except STORE_ERRORS as e:
            logger.exception(f"Failed to delete event {event_id}")
            raise InternalError() from e

        self._delete_image(event.get("image"))
        logger.info(f"Event {event_id} deleted by {user_id}")

    def list_upcoming(
        self,
        now: datetime,
        search: Optional[str] = None,
        min_date: Optional[datetime] = None,
    ) -> List[EventOut]:
        """Events on or after now (or min_date when given), ascending by date"""
        since = min_date if min_date is not None else now
        events = self.store.query_timeline(since=since, title_contains=search)
        return [to_event_out(event) for event in events]

    def list_attending(self, user_id: str, now: datetime) -> List[EventOut]:
        events = self.store.query_timeline(since=now, attendee=user_id)
        return [to_event_out(event) for event in events]

    def list_created(self, user_id: str) -> List[EventOut]:
        events = self.store.query_timeline(creator=user_id)
        return [to_event_out(event) for event in events]

    def _raise_update_rejection(self, event_id: str, user_id: str) -> None:
        # The conditional write failed; find out which condition moved.
        current = self.store.get_event(event_id)
        if current is None:
            raise NotFoundError()
        if current["creator"] != user_id:
            raise ForbiddenError("Not authorized to update this event")
        raise CapacityBelowAttendanceError(len(current["attendees"]))

    def _save_image(self, image: Optional[UploadFile]) -> str:
        if image is None or not image.filename or self.images is None:
            return ""
        return self.images.save(image)

    def _delete_image(self, ref: Optional[str]) -> None:
        if ref and self.images is not None:
            self.images.delete(ref)
