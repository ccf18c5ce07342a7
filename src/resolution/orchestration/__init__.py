"""
Orchestration

The single decision-and-commit entry point: execute an action against a
shipment, with exactly one evidence record per attempt.
"""

from resolution.orchestration.factory import build_conversation_service, build_orchestrator
from resolution.orchestration.orchestrator import (
    ActionOrchestrator,
    execute_action,
    get_default_orchestrator,
    reset_default_orchestrator,
)

__all__ = [
    "ActionOrchestrator",
    "build_conversation_service",
    "build_orchestrator",
    "execute_action",
    "get_default_orchestrator",
    "reset_default_orchestrator",
]
