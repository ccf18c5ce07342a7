"""
Policy Layer

Pure policy evaluation plus read-once access to the policy configuration.
"""

from resolution.policy.engine import evaluate, get_allowed_actions, validate_action
from resolution.policy.config import (
    DEFAULT_POLICY,
    load_policy_config,
    update_policy_config,
    validate_policy_config,
)

__all__ = [
    "evaluate",
    "get_allowed_actions",
    "validate_action",
    "DEFAULT_POLICY",
    "load_policy_config",
    "update_policy_config",
    "validate_policy_config",
]
