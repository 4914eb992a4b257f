"""Domain errors raised by the services and rendered by the API."""

from typing import Any, Dict, List


class DomainError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_content(self) -> Dict[str, Any]:
        return {"message": self.message}


class NotFoundError(DomainError):
    def __init__(self, message: str = "Event not found"):
        super().__init__(message, 404)


class ForbiddenError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 403)


class UnauthorizedError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, 401)


class ValidationFailedError(DomainError):
    """Field-level validation failure; each entry has ``field`` and ``message``."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__("Validation failed", 400)

    def to_content(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class EventExpiredError(DomainError):
    def __init__(self):
        super().__init__("Cannot RSVP to past events", 400)


class RsvpWindowNotOpenError(DomainError):
    def __init__(self, remaining_seconds: int):
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"RSVP will open in {remaining_seconds} seconds. "
            "Please wait at least 1 minute after event creation.",
            400,
        )

    def to_content(self) -> Dict[str, Any]:
        return {"message": self.message, "remainingSeconds": self.remaining_seconds}


class AlreadyReservedError(DomainError):
    def __init__(self):
        super().__init__("You have already RSVP'd to this event", 400)


class NotReservedError(DomainError):
    def __init__(self):
        super().__init__("You have not RSVP'd to this event", 400)


class AtCapacityError(DomainError):
    def __init__(self):
        super().__init__("Event is at full capacity", 400)


class ReservationConflictError(DomainError):
    """The conditional commit matched nothing: capacity, duplicate or deletion race."""

    def __init__(self):
        super().__init__(
            "Could not RSVP. Event may be at capacity or you may have already RSVP'd.",
            400,
        )


class CapacityBelowAttendanceError(DomainError):
    def __init__(self, attendee_count: int):
        self.attendee_count = attendee_count
        super().__init__(
            f"Capacity cannot be less than current attendees ({attendee_count})", 400
        )

    def to_content(self) -> Dict[str, Any]:
        return {"message": self.message, "attendeeCount": self.attendee_count}


class InternalError(DomainError):
    def __init__(self, message: str = "Server error"):
        super().__init__(message, 500)
