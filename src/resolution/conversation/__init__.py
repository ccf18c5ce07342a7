"""
Conversation Lifecycle

Finite-state tracking of the customer interaction per shipment.
"""

from resolution.conversation.intent import detect_customer_intent
from resolution.conversation.models import (
    LIVE_STATUSES,
    Conversation,
    ConversationEvent,
    ConversationStatus,
)
from resolution.conversation.service import ConversationService
from resolution.conversation.state_machine import TRANSITIONS, can_transition, get_next_status

__all__ = [
    "LIVE_STATUSES",
    "Conversation",
    "ConversationEvent",
    "ConversationService",
    "ConversationStatus",
    "TRANSITIONS",
    "can_transition",
    "detect_customer_intent",
    "get_next_status",
]
