"""
Tests for policy configuration loading and admin updates.
"""

from unittest.mock import Mock

import pytest

from db.memory import InMemoryPolicyConfigStore
from db.policy_config import PolicyConfigDB
from resolution.domain.models import PolicyConfig
from resolution.policy.config import (
    DEFAULT_POLICY,
    load_policy_config,
    update_policy_config,
    validate_policy_config,
)


def test_load_creates_default_once():
    """Test that the default is persisted on first read and reused afterwards."""
    store = InMemoryPolicyConfigStore()

    first = load_policy_config(store)
    second = load_policy_config(store)

    assert first.reschedule_cutoff_minutes == 120
    assert first.max_geo_move_meters == 250
    assert first.trust_threshold_location == 0.8
    assert first.max_content_multiplier == 0
    assert first.version == 1
    assert first == second
    assert store.get_latest()["version"] == 1


def test_load_returns_winner_when_create_races():
    """Test that a lost create race returns the configuration another writer created."""
    store = Mock(spec=PolicyConfigDB)
    store.get_latest.return_value = None
    winner = {**DEFAULT_POLICY.to_snapshot(), "reschedule_cutoff_minutes": 90}
    store.create_initial.return_value = winner

    config = load_policy_config(store)

    assert config.reschedule_cutoff_minutes == 90
    store.create_initial.assert_called_once()


def test_load_does_not_write_when_config_exists():
    store = Mock(spec=PolicyConfigDB)
    store.get_latest.return_value = PolicyConfig(reschedule_cutoff_minutes=60, version=4).to_snapshot()

    config = load_policy_config(store)

    assert config.reschedule_cutoff_minutes == 60
    assert config.version == 4
    store.create_initial.assert_not_called()


def test_update_bumps_version_and_keeps_history():
    """Test that an admin update writes a new version without replacing the old one."""
    store = InMemoryPolicyConfigStore()
    load_policy_config(store)

    updated = update_policy_config(store, reschedule_cutoff_minutes=60)

    assert updated.version == 2
    assert updated.reschedule_cutoff_minutes == 60
    assert updated.max_geo_move_meters == 250
    assert load_policy_config(store).reschedule_cutoff_minutes == 60
    assert sorted(store._versions) == [1, 2]


def test_update_rejects_invalid_values():
    store = InMemoryPolicyConfigStore()

    with pytest.raises(ValueError, match="trust_threshold_location"):
        update_policy_config(store, trust_threshold_location=1.5)


def test_update_rejects_unknown_fields():
    store = InMemoryPolicyConfigStore()

    with pytest.raises(ValueError, match="Unknown policy fields: refund_limit"):
        update_policy_config(store, refund_limit=10)


def test_validate_policy_config():
    assert validate_policy_config(DEFAULT_POLICY) == []

    errors = validate_policy_config(PolicyConfig(
        reschedule_cutoff_minutes=-1,
        max_geo_move_meters=0,
        trust_threshold_location=-0.1,
        max_content_multiplier=-2,
    ))

    assert len(errors) == 4
