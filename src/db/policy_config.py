"""
DynamoDB Table: policy_configs (versioned)

Primary Key (composite):
  - PK = POLICY
  - SK = VERSION#{version:010d}

Attributes:
  - version (number)
  - reschedule_cutoff_minutes, max_geo_move_meters,
    trust_threshold_location, max_content_multiplier
  - updated_at

Each admin change is written as a new version; the latest version is the
one with the highest sort key.
"""

import logging
from typing import Any, Dict, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from db.dynamo import floats_to_decimal, get_table, json_safe

logger = logging.getLogger(__name__)

POLICY_PK = "POLICY"


class PolicyVersionConflict(Exception):
    """Raised when a policy version has already been written."""
    pass


def _version_key(version: int) -> Dict[str, str]:
    return {"PK": POLICY_PK, "SK": f"VERSION#{int(version):010d}"}


def _strip_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in json_safe(item).items() if k not in ("PK", "SK")}


class PolicyConfigDB:
    def __init__(self, table_name: str = "policy_configs", region_name: Optional[str] = None, timeout: float = 5.0):
        self.table = get_table(table_name, region_name=region_name, timeout=timeout)

    def get_latest(self) -> Optional[Dict[str, Any]]:
        resp = self.table.query(
            KeyConditionExpression=Key("PK").eq(POLICY_PK),
            ScanIndexForward=False,
            Limit=1,
        )
        items = resp.get("Items", [])
        return _strip_keys(items[0]) if items else None

    def create_initial(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Write the first policy version exactly once.

        If another writer created it first, the existing latest version is
        returned so every caller sees the same default.
        """
        try:
            return self.save_version(item)
        except PolicyVersionConflict:
            logger.info("Initial policy configuration already created by another writer")
            latest = self.get_latest()
            if latest is None:
                raise
            return latest

    def save_version(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Write a new policy version.

        Raises:
            PolicyVersionConflict: If the version already exists
        """
        record = {**_version_key(item["version"]), **item}
        try:
            self.table.put_item(
                Item=floats_to_decimal(record),
                ConditionExpression="attribute_not_exists(SK)",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise PolicyVersionConflict(f"Policy version {item['version']} already exists") from e
            raise
        return item
