"""
DynamoDB Table: evidence_packets (append-only)

Primary Key:
  - evidence_id (string)

Attributes:
  - shipment_id, action_type, outcome, outcome_detail
  - trust_method, trust_confidence
  - policy_snapshot, before_state, requested_state,
    system_writes, after_state  (opaque JSON strings)
  - hash_prev, hash_self        (reserved, unset)
  - created_at

GSIs:
  - GSI1_ShipmentEvidence → all evidence for a shipment in creation order
      PK = SHIPMENT#{shipment_id}
      SK = CREATED_AT#{created_at}#EVIDENCE#{evidence_id}

There is deliberately no update or delete method on this class.
"""

import logging
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from db.dynamo import floats_to_decimal, get_table, json_safe

logger = logging.getLogger(__name__)

GSI1_NAME = "GSI1_ShipmentEvidence"


class DuplicateEvidenceError(Exception):
    """Raised when an evidence_id already exists in the table."""
    pass


class EvidenceDB:
    def __init__(self, table_name: str = "evidence_packets", region_name: Optional[str] = None, timeout: float = 5.0):
        self.table = get_table(table_name, region_name=region_name, timeout=timeout)

    def put(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new evidence item. Never overwrites an existing one.

        Raises:
            DuplicateEvidenceError: If evidence_id is already present
        """
        record = dict(item)
        record["GSI1PK"] = f"SHIPMENT#{item['shipment_id']}"
        record["GSI1SK"] = f"CREATED_AT#{item['created_at']}#EVIDENCE#{item['evidence_id']}"

        try:
            self.table.put_item(
                Item=floats_to_decimal(record),
                ConditionExpression="attribute_not_exists(evidence_id)",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise DuplicateEvidenceError(f"Evidence {item['evidence_id']} already exists") from e
            raise
        return item

    def get(self, evidence_id: str) -> Optional[Dict[str, Any]]:
        resp = self.table.get_item(Key={"evidence_id": evidence_id})
        item = resp.get("Item")
        return json_safe(item) if item else None

    def list_by_shipment(self, shipment_id: str) -> List[Dict[str, Any]]:
        """All evidence items for a shipment, oldest first."""
        items: List[Dict[str, Any]] = []
        kwargs: Dict[str, Any] = {
            "IndexName": GSI1_NAME,
            "KeyConditionExpression": Key("GSI1PK").eq(f"SHIPMENT#{shipment_id}"),
            "ScanIndexForward": True,
        }
        while True:
            resp = self.table.query(**kwargs)
            items.extend(json_safe(i) for i in resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return items
