"""
Policy Configuration

Read-once access to the versioned policy configuration and the admin-side
update path. The configuration is passed explicitly into each decision and
never read ambiently mid-orchestration.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List

from resolution.domain.clock import utcnow
from resolution.domain.models import PolicyConfig

logger = logging.getLogger(__name__)

DEFAULT_POLICY = PolicyConfig(version=1)

_UPDATABLE_FIELDS = (
    "reschedule_cutoff_minutes",
    "max_geo_move_meters",
    "trust_threshold_location",
    "max_content_multiplier",
)


def load_policy_config(store) -> PolicyConfig:
    """
    Return the latest persisted policy configuration.

    If none has ever been persisted, the hard-coded default is written once
    and returned. If another writer wins the race to create it, the winner's
    configuration is returned instead.

    Args:
        store: Policy configuration store (get_latest / create_initial)

    Returns:
        PolicyConfig to pass down through the whole attempt
    """
    latest = store.get_latest()
    if latest is not None:
        return PolicyConfig.from_dict(latest)

    logger.info("No policy configuration persisted; creating default version 1")
    created = store.create_initial(replace(DEFAULT_POLICY, updated_at=utcnow()).to_snapshot())
    return PolicyConfig.from_dict(created)


def validate_policy_config(config: PolicyConfig) -> List[str]:
    """Validate a policy configuration; returns a list of errors (empty if valid)."""
    errors: List[str] = []
    if config.reschedule_cutoff_minutes < 0:
        errors.append("reschedule_cutoff_minutes must be >= 0")
    if config.max_geo_move_meters <= 0:
        errors.append("max_geo_move_meters must be > 0")
    if not (0 <= config.trust_threshold_location <= 1):
        errors.append("trust_threshold_location must be between 0 and 1")
    if config.max_content_multiplier < 0:
        errors.append("max_content_multiplier must be >= 0")
    return errors


def update_policy_config(store, **changes: Any) -> PolicyConfig:
    """
    Persist a new policy version with the given field changes.

    Earlier versions stay in the store so older evidence snapshots remain
    explainable.

    Raises:
        ValueError: On unknown fields or an invalid resulting configuration
    """
    unknown = set(changes) - set(_UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown policy fields: {', '.join(sorted(unknown))}")

    current = load_policy_config(store)
    updates: Dict[str, Any] = {k: v for k, v in changes.items() if v is not None}
    candidate = replace(
        current,
        version=current.version + 1,
        updated_at=utcnow(),
        **updates,
    )

    errors = validate_policy_config(candidate)
    if errors:
        raise ValueError("Invalid policy configuration: " + "; ".join(errors))

    saved = PolicyConfig.from_dict(store.save_version(candidate.to_snapshot()))
    logger.info(f"Policy configuration updated to version {saved.version}: {updates}")
    return saved
