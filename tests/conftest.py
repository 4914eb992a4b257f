import pytest
import boto3
from datetime import datetime, timedelta, timezone
from moto import mock_aws

from eventhub.database.event_store import DynamoEventStore
from eventhub.services.event_service import EventService
from eventhub.services.image_storage import ImageStorage
from eventhub.services.reservation_service import ReservationService
from eventhub.utils import to_iso
from scripts.init_dynamodb import create_table_if_not_exists

TEST_TABLE_NAME = "EventRsvp_Test"

# Fixed request time used across the suites
NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def dynamodb_resource():
    """In-process DynamoDB with a fresh test table for every test"""
    with mock_aws():
        resource = boto3.resource(
            "dynamodb",
            region_name="us-east-1",
            aws_access_key_id="fake",
            aws_secret_access_key="fake",
        )
        create_table_if_not_exists(TEST_TABLE_NAME, resource)
        yield resource


@pytest.fixture
def event_store(dynamodb_resource):
    return DynamoEventStore(dynamodb_resource, TEST_TABLE_NAME)


@pytest.fixture
def image_storage(tmp_path):
    return ImageStorage(
        tmp_path / "uploads",
        max_bytes=1024,
        allowed_types=["image/jpeg", "image/png"],
    )


@pytest.fixture
def event_service(event_store, image_storage):
    return EventService(event_store, image_storage)


@pytest.fixture
def reservation_service(event_store):
    return ReservationService(event_store)


def make_event(event_id="event-1", **overrides):
    """Stored representation of an event, open for RSVPs at NOW"""
    event = {
        "id": event_id,
        "title": "Tech Meetup",
        "description": "A great tech meetup",
        "date": to_iso(NOW + timedelta(days=7)),
        "location": "Tech Hub",
        "capacity": 2,
        "attendees": [],
        "creator": "creator-1",
        "createdAt": to_iso(NOW - timedelta(minutes=5)),
        "rsvpOpenAt": to_iso(NOW - timedelta(minutes=4)),
        "image": "",
    }
    event.update(overrides)
    return event


def valid_form(**overrides):
    form = {
        "title": "Tech Meetup",
        "description": "A great tech meetup",
        "date": "2030-06-08T18:00:00Z",
        "location": "Tech Hub",
        "capacity": "2",
    }
    form.update(overrides)
    return form
