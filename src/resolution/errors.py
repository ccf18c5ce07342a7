"""
Resolution Core - Error Classes

Custom exceptions for the decision-and-commit core.

Three failure kinds are kept apart in results and evidence:
- ValidationError: structurally malformed action (caller error)
- PolicyDenial: well-formed action that current policy forbids
- ExecutionError: a system adapter or store failed during the attempt
"""


class ResolutionError(Exception):
    """Base class for all resolution core errors."""
    pass


class ValidationError(ResolutionError):
    """Raised when an action is structurally malformed."""
    pass


class PolicyDenial(ResolutionError):
    """
    A well-formed action forbidden by policy.

    Classification only: the orchestrator reports denials as an ActionResult
    with Outcome.POLICY_DENIED and never raises this across execute().
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ExecutionError(ResolutionError):
    """Raised when a system write or read fails during orchestration."""
    pass


class UpstreamError(ExecutionError):
    """Raised when an upstream system (OMS, Dispatch) fails."""
    pass


class ShipmentNotFound(UpstreamError):
    """Raised when the OMS has no shipment with the requested id."""

    def __init__(self, shipment_id: str):
        super().__init__(f"Shipment {shipment_id} not found")
        self.shipment_id = shipment_id


class LockUnavailable(ExecutionError):
    """Raised when the per-shipment advisory lock cannot be acquired in time."""
    pass


class EvidenceWriteError(ResolutionError):
    """Raised when the evidence store rejects or fails an append."""
    pass


class ConversationNotFound(ResolutionError):
    """Raised when a conversation id does not exist."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id
