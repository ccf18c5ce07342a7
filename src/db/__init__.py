"""
Record Stores

DynamoDB-backed stores for evidence packets, conversations and policy
configuration versions, plus in-memory equivalents.
"""

from db.conversation import ConversationDB
from db.evidence import DuplicateEvidenceError, EvidenceDB
from db.memory import InMemoryConversationStore, InMemoryEvidenceStore, InMemoryPolicyConfigStore
from db.policy_config import PolicyConfigDB, PolicyVersionConflict

__all__ = [
    "ConversationDB",
    "DuplicateEvidenceError",
    "EvidenceDB",
    "InMemoryConversationStore",
    "InMemoryEvidenceStore",
    "InMemoryPolicyConfigStore",
    "PolicyConfigDB",
    "PolicyVersionConflict",
]
