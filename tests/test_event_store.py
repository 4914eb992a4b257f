import pytest
from datetime import timedelta
from botocore.exceptions import ClientError

from eventhub.database.event_store import (
    REMOVE_ATTEMPTS,
    AttendeeListContentionError,
    event_key,
)
from eventhub.utils import to_iso
from tests.conftest import NOW, make_event


def test_put_event_adds_index_attributes(event_store):
    event_store.put_event(make_event(title="Tech MEETUP"))

    item = event_store.table.get_item(Key=event_key("event-1"))["Item"]
    assert item["titleLower"] == "tech meetup"
    assert item["GSI_EventsByDate_PK"] == "EVENT_TIMELINE"
    assert item["GSI_EventsByDate_SK"] == f"DATE#{item['date']}#EVENT#event-1"

    # internal attributes never leave the store
    event = event_store.get_event("event-1")
    assert "PK" not in event
    assert "titleLower" not in event
    assert not any(k.startswith("GSI_") for k in event)


def test_add_attendee_respects_capacity(event_store):
    event_store.put_event(make_event(capacity=2))

    assert event_store.add_attendee("event-1", "user-a") is True
    assert event_store.add_attendee("event-1", "user-b") is True
    assert event_store.add_attendee("event-1", "user-c") is False

    assert event_store.get_event("event-1")["attendees"] == ["user-a", "user-b"]


def test_add_attendee_rejects_duplicates(event_store):
    event_store.put_event(make_event(capacity=5))

    assert event_store.add_attendee("event-1", "user-a") is True
    assert event_store.add_attendee("event-1", "user-a") is False

    assert event_store.get_event("event-1")["attendees"] == ["user-a"]


def test_add_attendee_to_missing_event_creates_nothing(event_store):
    assert event_store.add_attendee("missing", "user-a") is False
    assert event_store.get_event("missing") is None


def test_remove_attendee(event_store):
    event_store.put_event(make_event(attendees=["user-a", "user-b"]))

    assert event_store.remove_attendee("event-1", "user-a") is True
    assert event_store.remove_attendee("event-1", "user-a") is False
    assert event_store.get_event("event-1")["attendees"] == ["user-b"]


def test_update_details_refuses_capacity_below_attendance(event_store):
    event_store.put_event(make_event(capacity=3, attendees=["user-a", "user-b"]))
    fields = {
        "title": "Renamed",
        "description": "Still great",
        "date": to_iso(NOW + timedelta(days=8)),
        "location": "Elsewhere",
        "capacity": 1,
    }

    assert event_store.update_details("event-1", "creator-1", fields) is None
    assert event_store.get_event("event-1")["title"] == "Tech Meetup"

    fields["capacity"] = 2
    updated = event_store.update_details("event-1", "creator-1", fields)
    assert updated["title"] == "Renamed"
    assert updated["capacity"] == 2
    assert updated["attendees"] == ["user-a", "user-b"]


def test_update_details_requires_creator(event_store):
    event_store.put_event(make_event())
    fields = {
        "title": "Hijacked",
        "description": "x",
        "date": to_iso(NOW + timedelta(days=8)),
        "location": "x",
        "capacity": 10,
    }

    assert event_store.update_details("event-1", "someone-else", fields) is None
    assert event_store.get_event("event-1")["title"] == "Tech Meetup"


def test_delete_event_requires_creator(event_store):
    event_store.put_event(make_event())

    assert event_store.delete_event("event-1", "someone-else") is False
    assert event_store.delete_event("event-1", "creator-1") is True
    assert event_store.get_event("event-1") is None


def test_query_timeline_orders_by_date(event_store):
    event_store.put_event(make_event("late", date=to_iso(NOW + timedelta(days=9))))
    event_store.put_event(make_event("early", date=to_iso(NOW + timedelta(days=1))))
    event_store.put_event(make_event("past", date=to_iso(NOW - timedelta(days=1))))

    upcoming = event_store.query_timeline(since=NOW)
    everything = event_store.query_timeline()

    assert [e["id"] for e in upcoming] == ["early", "late"]
    assert [e["id"] for e in everything] == ["past", "early", "late"]


def test_remove_attendee_gives_up_when_list_keeps_moving(event_store, monkeypatch):
    event_store.put_event(make_event(attendees=["user-a", "user-b"]))
    attempts = []

    def always_moved(**kwargs):
        attempts.append(kwargs)
        raise ClientError(
            {"Error": {"Code": "ConditionalCheckFailedException", "Message": "moved"}},
            "UpdateItem",
        )

    monkeypatch.setattr(event_store.table, "update_item", always_moved)

    with pytest.raises(AttendeeListContentionError):
        event_store.remove_attendee("event-1", "user-a")
    assert len(attempts) == REMOVE_ATTEMPTS
