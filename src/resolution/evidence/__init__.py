"""
Evidence Ledger

Append-only audit trail: one record per orchestration attempt.
"""

from resolution.evidence.ledger import EvidenceLedger, item_to_record, record_to_item

__all__ = ["EvidenceLedger", "item_to_record", "record_to_item"]
