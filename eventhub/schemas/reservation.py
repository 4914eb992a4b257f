from pydantic import BaseModel

from eventhub.schemas.event import EventOut


class ReservationOut(BaseModel):
    """Result of a join or leave request, mirroring the committed event"""

    message: str
    event: EventOut


class MessageOut(BaseModel):
    message: str
