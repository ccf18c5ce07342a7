"""
Conversation Model

Per-shipment interaction session and its lifecycle vocabulary.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from resolution.domain.clock import format_datetime, parse_datetime, parse_optional_datetime


class ConversationStatus(str, Enum):
    OPEN = "OPEN"
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    REOPENED = "REOPENED"


class ConversationEvent(str, Enum):
    MESSAGE_RECEIVED = "MESSAGE_RECEIVED"
    ACTION_COMPLETED = "ACTION_COMPLETED"
    CUSTOMER_SATISFIED = "CUSTOMER_SATISFIED"
    CUSTOMER_GOODBYE = "CUSTOMER_GOODBYE"
    CUSTOMER_NEW_REQUEST = "CUSTOMER_NEW_REQUEST"
    TIMEOUT_24H = "TIMEOUT_24H"


LIVE_STATUSES = frozenset({
    ConversationStatus.OPEN,
    ConversationStatus.ACTIVE,
    ConversationStatus.RESOLVED,
    ConversationStatus.REOPENED,
})


@dataclass(frozen=True)
class Conversation:
    conversation_id: str
    shipment_id: str
    status: ConversationStatus
    actions_taken: int
    opened_at: datetime
    last_message_at: datetime
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    reopened_at: Optional[datetime] = None

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Conversation":
        return cls(
            conversation_id=data["conversation_id"],
            shipment_id=data["shipment_id"],
            status=ConversationStatus(data["status"]),
            actions_taken=int(data.get("actions_taken", 0)),
            opened_at=parse_datetime(data["opened_at"]),
            last_message_at=parse_datetime(data.get("last_message_at") or data["opened_at"]),
            resolved_at=parse_optional_datetime(data.get("resolved_at")),
            closed_at=parse_optional_datetime(data.get("closed_at")),
            reopened_at=parse_optional_datetime(data.get("reopened_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "shipment_id": self.shipment_id,
            "status": self.status.value,
            "actions_taken": self.actions_taken,
            "opened_at": format_datetime(self.opened_at),
            "last_message_at": format_datetime(self.last_message_at),
            "resolved_at": format_datetime(self.resolved_at),
            "closed_at": format_datetime(self.closed_at),
            "reopened_at": format_datetime(self.reopened_at),
        }
