"""
Conversation State Machine

Pure transition table for the conversation lifecycle:
OPEN -> ACTIVE -> RESOLVED -> CLOSED, with REOPENED as a re-entry state.

Any (status, event) pair not in the table has no transition; callers treat
that as a benign signal, not an error. No side effects here: timestamps and
counters are applied by the conversation service.
"""

from typing import Dict, Optional, Tuple

from resolution.conversation.models import ConversationEvent, ConversationStatus

S = ConversationStatus
E = ConversationEvent

TRANSITIONS: Dict[Tuple[ConversationStatus, ConversationEvent], ConversationStatus] = {
    # first message or action
    (S.OPEN, E.MESSAGE_RECEIVED): S.ACTIVE,
    (S.OPEN, E.ACTION_COMPLETED): S.ACTIVE,

    (S.ACTIVE, E.CUSTOMER_SATISFIED): S.RESOLVED,
    (S.ACTIVE, E.ACTION_COMPLETED): S.ACTIVE,

    (S.RESOLVED, E.CUSTOMER_GOODBYE): S.CLOSED,
    (S.RESOLVED, E.CUSTOMER_NEW_REQUEST): S.REOPENED,
    (S.RESOLVED, E.TIMEOUT_24H): S.CLOSED,

    (S.REOPENED, E.MESSAGE_RECEIVED): S.ACTIVE,
    (S.REOPENED, E.ACTION_COMPLETED): S.ACTIVE,

    # closed is terminal in practice but can be reopened
    (S.CLOSED, E.CUSTOMER_NEW_REQUEST): S.REOPENED,
}


def get_next_status(
    current: ConversationStatus,
    event: ConversationEvent
) -> Optional[ConversationStatus]:
    """
    Look up the status reached from `current` on `event`.

    Returns:
        The next status, or None if there is no valid transition
    """
    return TRANSITIONS.get((ConversationStatus(current), ConversationEvent(event)))


def can_transition(current: ConversationStatus, event: ConversationEvent) -> bool:
    return get_next_status(current, event) is not None
