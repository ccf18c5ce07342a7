"""
Evidence Ledger

Append-only writer/reader of audit records keyed by shipment.

The ledger assigns evidence_id and created_at at append time and stores
before/requested/after state, the policy snapshot and the system write
receipts as opaque JSON payloads. It exposes no update or delete operation.

Tamper-evidence (hash_prev / hash_self chaining) is not implemented; the
fields are reserved and always written as null.
"""

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from resolution.domain.clock import format_datetime, parse_datetime, utcnow
from resolution.domain.models import EvidenceRecord, Outcome, SystemWrite
from resolution.errors import EvidenceWriteError

logger = logging.getLogger(__name__)


def _dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def record_to_item(record: EvidenceRecord) -> Dict[str, Any]:
    """Serialize an evidence record into a flat store item."""
    return {
        "evidence_id": record.evidence_id,
        "shipment_id": record.shipment_id,
        "action_type": record.action_type,
        "outcome": record.outcome.value,
        "outcome_detail": record.outcome_detail,
        "trust_method": record.trust_method,
        "trust_confidence": record.trust_confidence,
        "policy_snapshot": _dumps(record.policy_snapshot),
        "before_state": _dumps(record.before_state),
        "requested_state": _dumps(record.requested_state),
        "system_writes": _dumps([w.to_dict() for w in record.system_writes]),
        "after_state": _dumps(record.after_state),
        "hash_prev": record.hash_prev,
        "hash_self": record.hash_self,
        "created_at": format_datetime(record.created_at),
    }


def item_to_record(item: Dict[str, Any]) -> EvidenceRecord:
    """Parse a store item back into an evidence record."""
    return EvidenceRecord(
        evidence_id=item["evidence_id"],
        shipment_id=item["shipment_id"],
        action_type=item["action_type"],
        outcome=Outcome(item["outcome"]),
        outcome_detail=item.get("outcome_detail"),
        trust_method=item["trust_method"],
        trust_confidence=float(item["trust_confidence"]),
        policy_snapshot=json.loads(item["policy_snapshot"]),
        before_state=json.loads(item["before_state"]),
        requested_state=json.loads(item["requested_state"]),
        system_writes=[SystemWrite.from_dict(w) for w in json.loads(item["system_writes"])],
        after_state=json.loads(item["after_state"]),
        hash_prev=item.get("hash_prev"),
        hash_self=item.get("hash_self"),
        created_at=parse_datetime(item["created_at"]),
    )


class EvidenceLedger:
    """Append-only audit log over an evidence store (put / get / list_by_shipment)."""

    def __init__(self, store, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or utcnow

    def append(self, record: EvidenceRecord) -> str:
        """
        Persist a new evidence record.

        Returns:
            The generated evidence_id

        Raises:
            EvidenceWriteError: If the store fails or rejects the write
        """
        stamped = replace(
            record,
            evidence_id=str(uuid.uuid4()),
            created_at=self._clock(),
            hash_prev=None,
            hash_self=None,
        )
        try:
            self.store.put(record_to_item(stamped))
        except Exception as e:
            logger.error(
                f"Evidence write failed for shipment {record.shipment_id} "
                f"({record.action_type}, {record.outcome.value}): {e}"
            )
            raise EvidenceWriteError(f"Evidence write failed: {e}") from e

        logger.info(
            f"Evidence {stamped.evidence_id} written for shipment {record.shipment_id}: "
            f"{record.action_type} -> {record.outcome.value}"
        )
        return stamped.evidence_id

    def list_by_shipment(self, shipment_id: str) -> List[EvidenceRecord]:
        """All evidence for a shipment in creation order."""
        records = [item_to_record(i) for i in self.store.list_by_shipment(shipment_id)]
        return sorted(records, key=lambda r: r.created_at)

    def get_by_id(self, evidence_id: str) -> Optional[EvidenceRecord]:
        item = self.store.get(evidence_id)
        return item_to_record(item) if item else None
