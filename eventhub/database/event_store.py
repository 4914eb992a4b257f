"""DynamoDB adapter holding the event aggregate.

Every event is a single item, so all attendee mutations are single-item
conditional writes. The services receive an instance of this class (or
anything with the same methods) instead of reaching for a global
connection.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from eventhub.utils import to_iso


TIMELINE_INDEX = "GSI_EventsByDate"
TIMELINE_PK = "EVENT_TIMELINE"
REMOVE_ATTEMPTS = 5

# Errors boto3 raises when the store rejects a call or cannot be reached
STORE_ERRORS = (ClientError, BotoCoreError)


class AttendeeListContentionError(Exception):
    """The attendee list kept changing underneath a removal"""


def event_key(event_id: str) -> Dict[str, str]:
    return {"PK": f"EVENT#{event_id}", "SK": "DETAIL"}


def timeline_sort_key(date_iso: str, event_id: str) -> str:
    return f"DATE#{date_iso}#EVENT#{event_id}"


def _is_condition_failure(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


class DynamoEventStore:
    def __init__(self, dynamodb_resource, table_name="EventRsvp"):
        self.dynamodb = dynamodb_resource
        self.table = dynamodb_resource.Table(table_name)

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        response = self.table.get_item(Key=event_key(event_id), ConsistentRead=True)
        item = response.get("Item")
        return self._clean_dynamodb_fields(item) if item else None

    def put_event(self, event: Dict[str, Any]) -> None:
        """Insert a new event item; fails if the id is already taken"""
        item = dict(event)
        item.update(event_key(event["id"]))
        item["titleLower"] = event["title"].lower()
        item["GSI_EventsByDate_PK"] = TIMELINE_PK
        item["GSI_EventsByDate_SK"] = timeline_sort_key(event["date"], event["id"])
        self.table.put_item(Item=item, ConditionExpression="attribute_not_exists(PK)")

    def add_attendee(self, event_id: str, user_id: str) -> bool:
        """
        Append user_id to attendees if, at commit time, the event still
        exists, the user is not already attending and a seat is free.
        Returns False when the condition did not hold.
        """
        try:
            self.table.update_item(
                Key=event_key(event_id),
                UpdateExpression="SET attendees = list_append(attendees, :new)",
                ConditionExpression=(
                    Attr("PK").exists()
                    & ~Attr("attendees").contains(user_id)
                    & Attr("attendees").size().lt(Attr("capacity"))
                ),
                ExpressionAttributeValues={":new": [user_id]},
            )
        except ClientError as e:
            if _is_condition_failure(e):
                return False
            raise
        return True

    def remove_attendee(self, event_id: str, user_id: str) -> bool:
        """
        Remove user_id from attendees. The new list is only written if the
        stored list still equals the one it was derived from; a concurrent
        join or leave forces a re-read. Returns False if the user is not
        (or no longer) attending.
        """
        for _ in range(REMOVE_ATTEMPTS):
            event = self.get_event(event_id)
            if event is None or user_id not in event["attendees"]:
                return False
            remaining = [a for a in event["attendees"] if a != user_id]
            try:
                self.table.update_item(
                    Key=event_key(event_id),
                    UpdateExpression="SET attendees = :remaining",
                    ConditionExpression=Attr("attendees").eq(event["attendees"]),
                    ExpressionAttributeValues={":remaining": remaining},
                )
                return True
            except ClientError as e:
                if not _is_condition_failure(e):
                    raise
                logger.debug(f"Attendee list of event {event_id} moved, re-reading")
        raise AttendeeListContentionError(
            f"Could not remove attendee from event {event_id} after "
            f"{REMOVE_ATTEMPTS} attempts"
        )

    def update_details(
        self, event_id: str, creator: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Overwrite the editable fields. The write only lands while the caller
        is still the creator and the attendee count fits the new capacity,
        so a capacity edit cannot race past a concurrent join.
        Returns the updated event, or None if the condition failed.
        """
        values = dict(fields)
        values["titleLower"] = fields["title"].lower()
        values["GSI_EventsByDate_SK"] = timeline_sort_key(fields["date"], event_id)

        names = {f"#{name}": name for name in values}
        names["#creator"] = "creator"
        expression_values = {f":{name}": value for name, value in values.items()}
        expression_values[":creator"] = creator
        update_expression = "SET " + ", ".join(f"#{name} = :{name}" for name in values)

        try:
            response = self.table.update_item(
                Key=event_key(event_id),
                UpdateExpression=update_expression,
                ConditionExpression=(
                    "attribute_exists(PK) AND #creator = :creator "
                    "AND size(attendees) <= :capacity"
                ),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=expression_values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if _is_condition_failure(e):
                return None
            raise
        return self._clean_dynamodb_fields(response["Attributes"])

    def delete_event(self, event_id: str, creator: str) -> bool:
        try:
            self.table.delete_item(
                Key=event_key(event_id),
                ConditionExpression=Attr("PK").exists() & Attr("creator").eq(creator),
            )
        except ClientError as e:
            if _is_condition_failure(e):
                return False
            raise
        return True

    def query_timeline(
        self,
        since: Optional[datetime] = None,
        title_contains: Optional[str] = None,
        attendee: Optional[str] = None,
        creator: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Events from the date-ordered index, ascending by date.
        All filters are optional and combined with AND.
        """
        key_condition = Key("GSI_EventsByDate_PK").eq(TIMELINE_PK)
        if since is not None:
            key_condition = key_condition & Key("GSI_EventsByDate_SK").gte(
                f"DATE#{to_iso(since)}"
            )

        filters = []
        if title_contains:
            filters.append(Attr("titleLower").contains(title_contains.lower()))
        if attendee:
            filters.append(Attr("attendees").contains(attendee))
        if creator:
            filters.append(Attr("creator").eq(creator))

        query_params: Dict[str, Any] = {
            "IndexName": TIMELINE_INDEX,
            "KeyConditionExpression": key_condition,
        }
        if filters:
            filter_expression = filters[0]
            for condition in filters[1:]:
                filter_expression = filter_expression & condition
            query_params["FilterExpression"] = filter_expression

        events = []
        while True:
            response = self.table.query(**query_params)
            events.extend(
                self._clean_dynamodb_fields(item) for item in response.get("Items", [])
            )
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            query_params["ExclusiveStartKey"] = last_key

        return events

    def _clean_dynamodb_fields(self, item: Dict) -> Dict:
        """Remove DynamoDB internal fields"""
        return {
            k: v
            for k, v in item.items()
            if k not in ["PK", "SK", "titleLower"] and not k.startswith("GSI_")
        }
