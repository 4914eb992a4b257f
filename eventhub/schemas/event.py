from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Any, Dict, List, Optional
from datetime import datetime

from eventhub.exceptions import ValidationFailedError


FIELD_MESSAGES = {
    "title": "Title is required",
    "description": "Description is required",
    "date": "Date is required",
    "location": "Location is required",
    "capacity": "Capacity must be at least 1",
}


class EventForm(BaseModel):
    """Fields a creator submits when creating or replacing an event"""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    date: datetime
    location: str = Field(min_length=1)
    capacity: int = Field(ge=1)

    @classmethod
    def from_form(cls, data: Dict[str, Any]) -> "EventForm":
        """Validate raw form values, collecting one message per bad field"""
        try:
            return cls.model_validate(
                {k: v for k, v in data.items() if v is not None and v != ""}
            )
        except ValidationError as e:
            errors = []
            seen = set()
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "form"
                if field in seen:
                    continue
                seen.add(field)
                errors.append(
                    {
                        "field": field,
                        "message": FIELD_MESSAGES.get(field, error["msg"]),
                    }
                )
            raise ValidationFailedError(errors)


class EventOut(BaseModel):
    id: str
    title: str
    description: str
    date: datetime
    location: str
    capacity: int
    attendees: List[str]
    attendeeCount: int
    creator: str
    createdAt: datetime
    rsvpOpenAt: Optional[datetime] = None
    image: str = ""
