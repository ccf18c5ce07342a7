"""
In-memory record stores.

Same method surface as the DynamoDB stores; used by the test execution
mode and by unit tests. State lives for the life of the instance.
"""

import threading
import uuid
from typing import Any, Dict, List, Optional

from db.conversation import LIVE_STATUSES, now_iso
from db.evidence import DuplicateEvidenceError
from db.policy_config import PolicyVersionConflict


class InMemoryEvidenceStore:
    def __init__(self):
        self._items: Dict[str, Dict[str, Any]] = {}
        self._order: List[str] = []
        self._lock = threading.Lock()

    def put(self, item: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if item["evidence_id"] in self._items:
                raise DuplicateEvidenceError(f"Evidence {item['evidence_id']} already exists")
            self._items[item["evidence_id"]] = dict(item)
            self._order.append(item["evidence_id"])
        return item

    def get(self, evidence_id: str) -> Optional[Dict[str, Any]]:
        item = self._items.get(evidence_id)
        return dict(item) if item else None

    def list_by_shipment(self, shipment_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                dict(self._items[eid])
                for eid in self._order
                if self._items[eid]["shipment_id"] == shipment_id
            ]


class InMemoryPolicyConfigStore:
    def __init__(self):
        self._versions: Dict[int, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get_latest(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if not self._versions:
                return None
            return dict(self._versions[max(self._versions)])

    def create_initial(self, item: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.save_version(item)
        except PolicyVersionConflict:
            latest = self.get_latest()
            if latest is None:
                raise
            return latest

    def save_version(self, item: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            version = int(item["version"])
            if version in self._versions:
                raise PolicyVersionConflict(f"Policy version {version} already exists")
            self._versions[version] = dict(item)
        return item


class InMemoryConversationStore:
    def __init__(self):
        self._items: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, shipment_id: str, opened_at: Optional[str] = None) -> Dict[str, Any]:
        timestamp = opened_at or now_iso()
        item = {
            "conversation_id": str(uuid.uuid4()),
            "shipment_id": shipment_id,
            "status": "OPEN",
            "actions_taken": 0,
            "opened_at": timestamp,
            "last_message_at": timestamp,
        }
        with self._lock:
            self._items[item["conversation_id"]] = item
        return dict(item)

    def get(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        item = self._items.get(conversation_id)
        return dict(item) if item else None

    def list_by_shipment(self, shipment_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            items = [dict(i) for i in self._items.values() if i["shipment_id"] == shipment_id]
        # equal opened_at: most recently created first
        return list(reversed(sorted(items, key=lambda i: i["opened_at"])))

    def find_live(self, shipment_id: str) -> Optional[Dict[str, Any]]:
        for item in self.list_by_shipment(shipment_id):
            if item["status"] in LIVE_STATUSES:
                return item
        return None

    def update(
        self,
        conversation_id: str,
        patch: Dict[str, Any],
        increment_actions: int = 0,
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get(conversation_id)
            if item is None:
                return None
            item.update(patch)
            if increment_actions:
                item["actions_taken"] = item.get("actions_taken", 0) + int(increment_actions)
            return dict(item)
