"""
Action Orchestrator

The only component allowed to call the system adapters and the only one
allowed to write evidence.

Flow per attempt:
1. Read the shipment (OMS) and the route-lock flag (Dispatch)
2. Normalize into a ShipmentSnapshot
3. Read the policy configuration (default persisted once if missing)
4. Validate the action; on failure record evidence and stop
5. Evaluate policy; on denial record evidence and stop
6. Run the action's write plan, OMS before Dispatch, aborting on the first
   failed write. One receipt per attempted write.
7. Re-read the shipment for after_state
8. Record evidence and return
9. Anything unexpected is caught once at the top; one best-effort evidence
   write is still made.

Exactly one evidence append is attempted per call. Partial writes are not
rolled back.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from resolution.domain.clock import utcnow
from resolution.domain.models import (
    Action,
    ActionResult,
    ActionType,
    EvidenceRecord,
    Outcome,
    PolicyConfig,
    ShipmentSnapshot,
    SystemName,
    SystemWrite,
)
from resolution.domain.normalize import normalize_shipment
from resolution.errors import EvidenceWriteError
from resolution.evidence.ledger import EvidenceLedger
from resolution.locks import NullLock
from resolution.policy.config import load_policy_config
from resolution.policy.engine import evaluate, validate_action

logger = logging.getLogger(__name__)

DEFAULT_TRUST_METHOD = "demo_pin"
DEFAULT_TRUST_CONFIDENCE = 1.0

# (system, operation name recorded in the receipt, adapter call)
WriteStep = Tuple[SystemName, str, Callable[[], Any]]


class _Attempt:
    """Mutable bookkeeping for one execute() call."""

    def __init__(self, action, shipment_id: str, trust_method: str, trust_confidence: float):
        self.action = action
        self.shipment_id = shipment_id
        self.trust_method = trust_method
        self.trust_confidence = trust_confidence
        self.before: Optional[ShipmentSnapshot] = None
        self.policy: Optional[PolicyConfig] = None
        self.writes: List[SystemWrite] = []
        self.evidence_attempted = False

    @property
    def action_type(self) -> str:
        action_type = getattr(self.action, "action_type", None)
        if isinstance(action_type, ActionType):
            return action_type.value
        return type(self.action).__name__

    @property
    def requested_state(self) -> Dict[str, Any]:
        to_payload = getattr(self.action, "to_payload", None)
        if not callable(to_payload):
            return {}
        try:
            return to_payload()
        except Exception as e:
            logger.warning(f"Could not serialize requested {self.action_type} for evidence: {e}")
            return {}


class ActionOrchestrator:
    """
    Coordinates one action across OMS and Dispatch with evidence on every path.

    shipment_lock serializes the read-decide-write span per shipment when a
    lock backend is configured; the default NullLock never blocks.
    """

    def __init__(
        self,
        oms_client,
        dispatch_client,
        evidence_ledger: EvidenceLedger,
        policy_store,
        shipment_lock=None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.oms = oms_client
        self.dispatch = dispatch_client
        self.ledger = evidence_ledger
        self.policy_store = policy_store
        self.shipment_lock = shipment_lock or NullLock()
        self._clock = clock or utcnow

    def execute(
        self,
        action: Action,
        shipment_id: str,
        trust_method: str = DEFAULT_TRUST_METHOD,
        trust_confidence: float = DEFAULT_TRUST_CONFIDENCE,
    ) -> ActionResult:
        """
        Run one action against a shipment.

        Never raises for validation failures, denials or adapter failures;
        those come back as an ActionResult with the matching outcome.
        """
        attempt = _Attempt(action, shipment_id, trust_method, trust_confidence)
        logger.info(f"Executing {attempt.action_type} for shipment {shipment_id}")

        try:
            with self.shipment_lock.hold(f"shipment:{shipment_id}"):
                return self._run(attempt)
        except Exception as e:
            logger.exception(f"Unexpected failure executing {attempt.action_type} for shipment {shipment_id}")
            return self._handle_unexpected(attempt, e)

    # ------------------------------------------------------------------
    # Steps 1-8
    # ------------------------------------------------------------------

    def _run(self, attempt: _Attempt) -> ActionResult:
        attempt.before = self._read_snapshot(attempt.shipment_id)
        attempt.policy = load_policy_config(self.policy_store)
        now = self._clock()
        before_state = attempt.before.to_dict()

        validation_error = validate_action(attempt.before, attempt.action, now=now)
        if validation_error:
            logger.warning(f"Validation failed for shipment {attempt.shipment_id}: {validation_error}")
            evidence_id = self._record(attempt, Outcome.VALIDATION_ERROR, before_state, validation_error)
            return ActionResult(
                success=False,
                outcome=Outcome.VALIDATION_ERROR,
                evidence_id=evidence_id,
                error=validation_error,
            )

        decision = evaluate(attempt.before, attempt.action, attempt.policy, now=now)
        if not decision.allowed:
            logger.warning(f"Policy denied {attempt.action_type} for shipment {attempt.shipment_id}: {decision.denial_reason}")
            evidence_id = self._record(attempt, Outcome.POLICY_DENIED, before_state, decision.denial_reason)
            return ActionResult(
                success=False,
                outcome=Outcome.POLICY_DENIED,
                evidence_id=evidence_id,
                denial_reason=decision.denial_reason,
                allowed_actions=list(decision.allowed_actions),
            )

        failure = self._run_writes(attempt)
        if failure is not None:
            after_state = self._best_effort_after_state(attempt.shipment_id)
            evidence_id = self._record(attempt, Outcome.EXECUTION_ERROR, after_state, failure)
            return ActionResult(
                success=False,
                outcome=Outcome.EXECUTION_ERROR,
                evidence_id=evidence_id,
                error=failure,
                allowed_actions=list(decision.allowed_actions),
            )

        after_state = self._read_snapshot(attempt.shipment_id).to_dict()
        evidence_id = self._record(attempt, Outcome.SUCCESS, after_state)
        logger.info(f"{attempt.action_type} committed for shipment {attempt.shipment_id} (evidence {evidence_id})")
        return ActionResult(
            success=True,
            outcome=Outcome.SUCCESS,
            evidence_id=evidence_id,
            allowed_actions=list(decision.allowed_actions),
        )

    def _read_snapshot(self, shipment_id: str) -> ShipmentSnapshot:
        raw = self.oms.get_shipment(shipment_id)
        route_locked = self.dispatch.is_route_locked(shipment_id)
        return normalize_shipment(raw, route_locked=route_locked)

    def _best_effort_after_state(self, shipment_id: str) -> Dict[str, Any]:
        """Re-read after a failed write so partial commits show up; {} if that fails too."""
        try:
            return self._read_snapshot(shipment_id).to_dict()
        except Exception as e:
            logger.warning(f"Could not re-read shipment {shipment_id} after failed write: {e}")
            return {}

    # ------------------------------------------------------------------
    # Write plan
    # ------------------------------------------------------------------

    def _write_plan(self, action: Action, shipment_id: str) -> List[WriteStep]:
        action_type = action.action_type
        if action_type == ActionType.RESCHEDULE:
            return [
                (SystemName.OMS, "updateWindow",
                 lambda: self.oms.update_window(shipment_id, action.new_window)),
                (SystemName.DISPATCH, "updateStop",
                 lambda: self.dispatch.update_stop(shipment_id, window=action.new_window)),
            ]
        if action_type == ActionType.UPDATE_INSTRUCTIONS:
            return [
                (SystemName.OMS, "updateInstructions",
                 lambda: self.oms.update_instructions(shipment_id, action.instructions)),
            ]
        if action_type == ActionType.UPDATE_LOCATION:
            return [
                (SystemName.OMS, "updateLocation",
                 lambda: self.oms.update_location(shipment_id, action.geo_pin, action.address)),
                (SystemName.DISPATCH, "updateStop",
                 lambda: self.dispatch.update_stop(shipment_id, geo=action.geo_pin, address=action.address)),
            ]
        raise TypeError(f"Unknown action type: {action_type!r}")

    def _run_writes(self, attempt: _Attempt) -> Optional[str]:
        """
        Run the write plan in order, recording a receipt per attempt.

        Returns:
            None when every write succeeded, otherwise the first error message
        """
        for system, operation, call in self._write_plan(attempt.action, attempt.shipment_id):
            try:
                call()
            except Exception as e:
                error = str(e) or type(e).__name__
                attempt.writes.append(SystemWrite(
                    system=system,
                    operation=operation,
                    timestamp=self._clock(),
                    success=False,
                    error=error,
                ))
                logger.warning(
                    f"{system.value}.{operation} failed for shipment {attempt.shipment_id}, "
                    f"aborting remaining writes: {error}"
                )
                return error

            attempt.writes.append(SystemWrite(
                system=system,
                operation=operation,
                timestamp=self._clock(),
                success=True,
            ))
            logger.debug(f"{system.value}.{operation} succeeded for shipment {attempt.shipment_id}")
        return None

    # ------------------------------------------------------------------
    # Evidence
    # ------------------------------------------------------------------

    def _record(
        self,
        attempt: _Attempt,
        outcome: Outcome,
        after_state: Dict[str, Any],
        detail: Optional[str] = None,
        before_state: Optional[Dict[str, Any]] = None,
        policy_snapshot: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Append the attempt's single evidence record. Raises EvidenceWriteError."""
        if before_state is None:
            before_state = attempt.before.to_dict() if attempt.before else {}
        if policy_snapshot is None:
            policy_snapshot = attempt.policy.to_snapshot() if attempt.policy else {}

        record = EvidenceRecord(
            shipment_id=attempt.shipment_id,
            action_type=attempt.action_type,
            trust_method=attempt.trust_method,
            trust_confidence=attempt.trust_confidence,
            policy_snapshot=policy_snapshot,
            before_state=before_state,
            requested_state=attempt.requested_state,
            system_writes=list(attempt.writes),
            after_state=after_state,
            outcome=outcome,
            outcome_detail=detail,
        )
        attempt.evidence_attempted = True
        return self.ledger.append(record)

    def _handle_unexpected(self, attempt: _Attempt, error: Exception) -> ActionResult:
        message = str(error) or type(error).__name__

        if attempt.evidence_attempted:
            # the one allowed append already happened (or failed); never retry it
            if isinstance(error, EvidenceWriteError):
                logger.error(
                    f"No evidence recorded for {attempt.action_type} on shipment {attempt.shipment_id}; "
                    f"{len(attempt.writes)} write(s) attempted"
                )
            return ActionResult(success=False, outcome=Outcome.EXECUTION_ERROR, error=message)

        policy_snapshot = None
        if attempt.policy is None:
            policy_snapshot = self._best_effort_policy_snapshot()

        try:
            evidence_id = self._record(
                attempt,
                Outcome.EXECUTION_ERROR,
                after_state={},
                detail=message,
                policy_snapshot=policy_snapshot,
            )
        except EvidenceWriteError:
            return ActionResult(success=False, outcome=Outcome.EXECUTION_ERROR, error=message)
        except Exception:
            logger.exception(f"Error evidence could not be built for shipment {attempt.shipment_id}")
            return ActionResult(success=False, outcome=Outcome.EXECUTION_ERROR, error=message)

        return ActionResult(
            success=False,
            outcome=Outcome.EXECUTION_ERROR,
            evidence_id=evidence_id,
            error=message,
        )

    def _best_effort_policy_snapshot(self) -> Dict[str, Any]:
        try:
            return load_policy_config(self.policy_store).to_snapshot()
        except Exception as e:
            logger.warning(f"Could not read policy configuration for error evidence: {e}")
            return {}


_default_orchestrator: Optional[ActionOrchestrator] = None


def get_default_orchestrator(backend=None) -> ActionOrchestrator:
    """
    Lazily build the process-wide orchestrator from environment settings.

    Args:
        backend: In-memory execution backend to wire in test mode. Passing one
            rebuilds the default orchestrator around it, so seeded shipments
            are reachable through execute_action().
    """
    global _default_orchestrator
    if _default_orchestrator is None or backend is not None:
        from resolution.orchestration.factory import build_orchestrator
        _default_orchestrator = build_orchestrator(backend=backend)
    return _default_orchestrator


def reset_default_orchestrator() -> None:
    global _default_orchestrator
    _default_orchestrator = None


def execute_action(
    action: Action,
    shipment_id: str,
    orchestrator: Optional[ActionOrchestrator] = None,
    trust_method: str = DEFAULT_TRUST_METHOD,
    trust_confidence: float = DEFAULT_TRUST_CONFIDENCE,
) -> ActionResult:
    """Convenience entry point over the default orchestrator."""
    orchestrator = orchestrator or get_default_orchestrator()
    return orchestrator.execute(
        action,
        shipment_id,
        trust_method=trust_method,
        trust_confidence=trust_confidence,
    )
