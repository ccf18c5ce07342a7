"""
Conversation Service

Applies lifecycle events to stored conversations.

The transition table decides the next status; this service applies the
side effects tied to the resulting state:
- every processed event refreshes last_message_at
- entering RESOLVED / CLOSED / REOPENED stamps resolved_at / closed_at / reopened_at
- ACTION_COMPLETED increments actions_taken even when the table has no
  transition for the current status
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from resolution.conversation.intent import detect_customer_intent
from resolution.conversation.models import Conversation, ConversationEvent, ConversationStatus
from resolution.conversation.state_machine import get_next_status
from resolution.domain.clock import format_datetime, utcnow
from resolution.domain.models import ActionResult
from resolution.errors import ConversationNotFound
from resolution.locks import NullLock

logger = logging.getLogger(__name__)

_STAMP_ON_ENTRY = {
    ConversationStatus.RESOLVED: "resolved_at",
    ConversationStatus.CLOSED: "closed_at",
    ConversationStatus.REOPENED: "reopened_at",
}


class ConversationService:
    """
    Lifecycle tracker over a conversation store
    (find_live / create / get / update / list_by_shipment).
    """

    def __init__(self, store, clock: Optional[Callable[[], datetime]] = None, lock=None):
        self.store = store
        self._clock = clock or utcnow
        self._lock = lock or NullLock()

    def get_or_create(self, shipment_id: str) -> Conversation:
        """
        Return the live conversation for a shipment, creating an OPEN one if none exists.

        The lookup and create run under the advisory lock for the shipment
        when one is configured.
        """
        with self._lock.hold(f"conversation:{shipment_id}"):
            existing = self.store.find_live(shipment_id)
            if existing:
                return Conversation.from_dict(existing)

            created = self.store.create(shipment_id, opened_at=format_datetime(self._clock()))
            logger.info(f"Opened conversation {created['conversation_id']} for shipment {shipment_id}")
            return Conversation.from_dict(created)

    def get(self, conversation_id: str) -> Conversation:
        item = self.store.get(conversation_id)
        if not item:
            raise ConversationNotFound(conversation_id)
        return Conversation.from_dict(item)

    def history(self, shipment_id: str) -> List[Conversation]:
        """All conversations for a shipment, newest first."""
        return [Conversation.from_dict(i) for i in self.store.list_by_shipment(shipment_id)]

    def transition(self, conversation_id: str, event: ConversationEvent) -> Conversation:
        """
        Process a lifecycle event.

        Returns:
            The conversation after the event. When the table has no
            transition, the status is unchanged; that is not an error.

        Raises:
            ConversationNotFound: If the conversation does not exist
        """
        event = ConversationEvent(event)
        conversation = self.get(conversation_id)
        next_status = get_next_status(conversation.status, event)
        now = format_datetime(self._clock())

        patch: Dict[str, Any] = {"last_message_at": now}
        if next_status is not None:
            patch["status"] = next_status.value
            stamp_field = _STAMP_ON_ENTRY.get(next_status)
            if stamp_field:
                patch[stamp_field] = now
        else:
            logger.debug(
                f"No transition for conversation {conversation_id}: "
                f"{conversation.status.value} + {event.value}"
            )

        increment = 1 if event == ConversationEvent.ACTION_COMPLETED else 0
        updated = self.store.update(conversation_id, patch, increment_actions=increment)
        if updated is None:
            raise ConversationNotFound(conversation_id)

        result = Conversation.from_dict(updated)
        if next_status is not None and next_status != conversation.status:
            logger.info(
                f"Conversation {conversation_id}: {conversation.status.value} "
                f"--{event.value}--> {result.status.value}"
            )
        return result

    def handle_customer_message(self, conversation_id: str, message: str) -> Conversation:
        """Detect the customer's intent from a message and apply it."""
        return self.transition(conversation_id, detect_customer_intent(message))

    def record_action_result(self, conversation_id: str, result: ActionResult) -> Conversation:
        """
        Feed an orchestration result into the lifecycle.

        Only successful actions count as ACTION_COMPLETED; denied or failed
        attempts refresh last_message_at as an ordinary message.
        """
        if result.success:
            return self.transition(conversation_id, ConversationEvent.ACTION_COMPLETED)
        return self.transition(conversation_id, ConversationEvent.MESSAGE_RECEIVED)
