"""
Tests for the conversation transition table.
"""

import pytest

from resolution.conversation.models import ConversationEvent as E
from resolution.conversation.models import ConversationStatus as S
from resolution.conversation.state_machine import TRANSITIONS, can_transition, get_next_status


@pytest.mark.parametrize("current,event,expected", [
    (S.OPEN, E.MESSAGE_RECEIVED, S.ACTIVE),
    (S.OPEN, E.ACTION_COMPLETED, S.ACTIVE),
    (S.ACTIVE, E.CUSTOMER_SATISFIED, S.RESOLVED),
    (S.ACTIVE, E.ACTION_COMPLETED, S.ACTIVE),
    (S.RESOLVED, E.CUSTOMER_GOODBYE, S.CLOSED),
    (S.RESOLVED, E.CUSTOMER_NEW_REQUEST, S.REOPENED),
    (S.RESOLVED, E.TIMEOUT_24H, S.CLOSED),
    (S.REOPENED, E.MESSAGE_RECEIVED, S.ACTIVE),
    (S.REOPENED, E.ACTION_COMPLETED, S.ACTIVE),
    (S.CLOSED, E.CUSTOMER_NEW_REQUEST, S.REOPENED),
])
def test_listed_transitions(current, event, expected):
    assert get_next_status(current, event) == expected
    assert can_transition(current, event) is True


def test_table_has_exactly_the_listed_rows():
    assert len(TRANSITIONS) == 10


@pytest.mark.parametrize("current,event", [
    (S.OPEN, E.CUSTOMER_GOODBYE),
    (S.ACTIVE, E.CUSTOMER_GOODBYE),
    (S.ACTIVE, E.MESSAGE_RECEIVED),
    (S.CLOSED, E.ACTION_COMPLETED),
    (S.CLOSED, E.TIMEOUT_24H),
    (S.RESOLVED, E.ACTION_COMPLETED),
])
def test_unlisted_pairs_have_no_transition(current, event):
    """Test that unlisted pairs return None rather than raising."""
    assert get_next_status(current, event) is None
    assert can_transition(current, event) is False


def test_accepts_raw_string_values():
    assert get_next_status("RESOLVED", "CUSTOMER_GOODBYE") == S.CLOSED
