from datetime import datetime

from fastapi import Depends

from eventhub.config import settings
from eventhub.database.dynamodb import get_db_connection
from eventhub.database.event_store import DynamoEventStore
from eventhub.services.event_service import EventService
from eventhub.services.image_storage import ImageStorage
from eventhub.services.reservation_service import ReservationService
from eventhub.utils import utcnow


def get_clock() -> datetime:
    """Request time; overridden in tests to pin the clock"""
    return utcnow()


def get_event_store():
    """Dependency to get the event store for the configured table"""
    return DynamoEventStore(get_db_connection(), settings.TABLE_NAME)


def get_image_storage() -> ImageStorage:
    return ImageStorage(
        settings.UPLOAD_DIR, settings.MAX_IMAGE_BYTES, settings.ALLOWED_IMAGE_TYPES
    )


def get_event_service(
    event_store=Depends(get_event_store),
    image_storage: ImageStorage = Depends(get_image_storage),
) -> EventService:
    return EventService(event_store, image_storage)


def get_reservation_service(event_store=Depends(get_event_store)) -> ReservationService:
    return ReservationService(event_store)
