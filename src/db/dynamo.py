"""
DynamoDB helpers shared by the record stores.
"""

import decimal
from typing import Any, Optional

import boto3
from botocore.config import Config


def get_table(table_name: str, region_name: Optional[str] = None, timeout: float = 5.0):
    """
    Return a DynamoDB Table resource with connect/read timeouts and retries disabled.

    Retrying is a caller decision; a timed out call surfaces as an error.
    """
    config = Config(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": 1, "mode": "standard"},
    )
    return boto3.resource("dynamodb", region_name=region_name, config=config).Table(table_name)


def floats_to_decimal(obj: Any) -> Any:
    """
    Recursively convert float values to Decimal for DynamoDB compatibility.

    >>> floats_to_decimal({"confidence": 0.8})
    {'confidence': Decimal('0.8')}
    """
    if isinstance(obj, dict):
        return {k: floats_to_decimal(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [floats_to_decimal(v) for v in obj]
    if isinstance(obj, float):
        return decimal.Decimal(str(obj))
    return obj


def json_safe(obj: Any) -> Any:
    """Recursively convert Decimal values read from DynamoDB to int or float."""
    if isinstance(obj, dict):
        return {k: json_safe(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [json_safe(v) for v in obj]
    if isinstance(obj, decimal.Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    return obj
