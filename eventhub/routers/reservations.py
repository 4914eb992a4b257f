from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends

from eventhub.auth import CurrentUser, get_current_user
from eventhub.dependencies import (
    get_clock,
    get_event_service,
    get_reservation_service,
)
from eventhub.schemas.event import EventOut
from eventhub.schemas.reservation import ReservationOut
from eventhub.services.event_service import EventService
from eventhub.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.get("/mine", response_model=List[EventOut])
def my_reservations(
    user: CurrentUser = Depends(get_current_user),
    now: datetime = Depends(get_clock),
    event_service: EventService = Depends(get_event_service),
):
    """Upcoming events the caller is attending"""
    return event_service.list_attending(user.id, now)


@router.get("/created", response_model=List[EventOut])
def my_created_events(
    user: CurrentUser = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service),
):
    """Events the caller created"""
    return event_service.list_created(user.id)


@router.post("/{event_id}", response_model=ReservationOut)
def reserve_seat(
    event_id: str,
    user: CurrentUser = Depends(get_current_user),
    now: datetime = Depends(get_clock),
    reservation_service: ReservationService = Depends(get_reservation_service),
):
    """Reserve a seat for the caller"""
    event = reservation_service.try_reserve(event_id, user.id, now)
    return ReservationOut(message="Successfully RSVP'd to event", event=event)


@router.delete("/{event_id}", response_model=ReservationOut)
def cancel_reservation(
    event_id: str,
    user: CurrentUser = Depends(get_current_user),
    reservation_service: ReservationService = Depends(get_reservation_service),
):
    """Give up the caller's seat"""
    event = reservation_service.cancel(event_id, user.id)
    return ReservationOut(message="Successfully cancelled RSVP", event=event)
