"""
DynamoDB Table: conversations

Primary Key:
  - conversation_id (string)

Attributes:
  - conversation_id, shipment_id
  - status              # OPEN, ACTIVE, RESOLVED, CLOSED, REOPENED
  - actions_taken       # monotonic counter, only ever incremented with ADD
  - opened_at, last_message_at
  - resolved_at, closed_at, reopened_at (optional)

GSIs:
  - GSI1_ShipmentConversations → conversations for a shipment, newest first
      PK = SHIPMENT#{shipment_id}
      SK = OPENED_AT#{opened_at}#CONVERSATION#{conversation_id}

"At most one live conversation per shipment" is enforced by the caller's
get-or-create path, not by a table constraint.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from db.dynamo import get_table, json_safe

logger = logging.getLogger(__name__)

GSI1_NAME = "GSI1_ShipmentConversations"
LIVE_STATUSES = ("OPEN", "ACTIVE", "RESOLVED", "REOPENED")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _strip_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in json_safe(item).items() if not k.startswith("GSI")}


class ConversationDB:
    def __init__(self, table_name: str = "conversations", region_name: Optional[str] = None, timeout: float = 5.0):
        self.table = get_table(table_name, region_name=region_name, timeout=timeout)

    # -------------------- Create --------------------

    def create(self, shipment_id: str, opened_at: Optional[str] = None) -> Dict[str, Any]:
        """Insert a new OPEN conversation for a shipment."""
        conversation_id = str(uuid.uuid4())
        timestamp = opened_at or now_iso()

        item = {
            "conversation_id": conversation_id,
            "shipment_id": shipment_id,
            "status": "OPEN",
            "actions_taken": 0,
            "opened_at": timestamp,
            "last_message_at": timestamp,
            "GSI1PK": f"SHIPMENT#{shipment_id}",
            "GSI1SK": f"OPENED_AT#{timestamp}#CONVERSATION#{conversation_id}",
        }
        self.table.put_item(
            Item=item,
            ConditionExpression="attribute_not_exists(conversation_id)",
        )
        return _strip_keys(item)

    # -------------------- Read --------------------

    def get(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        resp = self.table.get_item(Key={"conversation_id": conversation_id})
        item = resp.get("Item")
        return _strip_keys(item) if item else None

    def list_by_shipment(self, shipment_id: str) -> List[Dict[str, Any]]:
        """All conversations for a shipment, newest first."""
        items: List[Dict[str, Any]] = []
        kwargs: Dict[str, Any] = {
            "IndexName": GSI1_NAME,
            "KeyConditionExpression": Key("GSI1PK").eq(f"SHIPMENT#{shipment_id}"),
            "ScanIndexForward": False,
        }
        while True:
            resp = self.table.query(**kwargs)
            items.extend(_strip_keys(i) for i in resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return items

    def find_live(self, shipment_id: str) -> Optional[Dict[str, Any]]:
        """Newest conversation for the shipment whose status is still live."""
        for item in self.list_by_shipment(shipment_id):
            if item.get("status") in LIVE_STATUSES:
                return item
        return None

    # -------------------- Update --------------------

    def update(
        self,
        conversation_id: str,
        patch: Dict[str, Any],
        increment_actions: int = 0,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply a SET patch and optionally ADD to actions_taken atomically.

        Returns:
            The updated conversation, or None if it does not exist
        """
        set_parts = []
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        for i, (field, value) in enumerate(patch.items()):
            names[f"#f{i}"] = field
            values[f":v{i}"] = value
            set_parts.append(f"#f{i} = :v{i}")

        expression = ""
        if set_parts:
            expression = "SET " + ", ".join(set_parts)
        if increment_actions:
            names["#actions"] = "actions_taken"
            values[":inc"] = int(increment_actions)
            expression = (expression + " ADD #actions :inc").strip()
        if not expression:
            return self.get(conversation_id)

        try:
            resp = self.table.update_item(
                Key={"conversation_id": conversation_id},
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression="attribute_exists(conversation_id)",
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            raise
        return _strip_keys(resp.get("Attributes", {}))
