from .event import EventForm, EventOut
from .reservation import MessageOut, ReservationOut

__all__ = [
    "EventForm",
    "EventOut",
    "MessageOut",
    "ReservationOut",
]
