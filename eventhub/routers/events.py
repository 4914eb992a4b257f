from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from eventhub.auth import CurrentUser, get_current_user
from eventhub.dependencies import get_clock, get_event_service
from eventhub.exceptions import ValidationFailedError
from eventhub.schemas.event import EventOut
from eventhub.schemas.reservation import MessageOut
from eventhub.services.event_service import EventService
from eventhub.utils import parse_iso

router = APIRouter(prefix="/events", tags=["events"])


def _form_data(title, description, date, location, capacity):
    return {
        "title": title,
        "description": description,
        "date": date,
        "location": location,
        "capacity": capacity,
    }


@router.get("", response_model=List[EventOut])
def list_events(
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
    date: Optional[str] = Query(
        None, description="Only events on or after this date (ISO format)"
    ),
    now: datetime = Depends(get_clock),
    event_service: EventService = Depends(get_event_service),
):
    """List upcoming events sorted by date"""
    min_date = None
    if date:
        try:
            min_date = parse_iso(date)
        except ValueError:
            raise ValidationFailedError(
                [{"field": "date", "message": "Date must be an ISO 8601 date"}]
            )
    return event_service.list_upcoming(now, search=search, min_date=min_date)


@router.get("/{event_id}", response_model=EventOut)
def get_event(
    event_id: str, event_service: EventService = Depends(get_event_service)
):
    return event_service.get_event(event_id)


@router.post("", response_model=EventOut, status_code=201)
def create_event(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    capacity: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    now: datetime = Depends(get_clock),
    event_service: EventService = Depends(get_event_service),
):
    """Create an event owned by the caller, with an optional image"""
    return event_service.create_event(
        user.id,
        _form_data(title, description, date, location, capacity),
        now,
        image=image,
    )


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    capacity: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    """Replace an event's details; only its creator may do this"""
    return event_service.update_event(
        event_id,
        user.id,
        _form_data(title, description, date, location, capacity),
        image=image,
    )


@router.delete("/{event_id}", response_model=MessageOut)
def delete_event(
    event_id: str,
    user: CurrentUser = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    event_service.delete_event(event_id, user.id)
    return MessageOut(message="Event deleted successfully")
