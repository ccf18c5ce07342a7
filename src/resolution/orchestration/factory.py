"""
Wiring for the orchestrator and conversation service.

CORE_EXECUTION_MODE=test builds everything in memory (no network, no AWS);
production wires the HTTP adapters, DynamoDB stores and the optional Redis
lock from Settings.
"""

import logging
from typing import Optional

from db.conversation import ConversationDB
from db.evidence import EvidenceDB
from db.memory import InMemoryConversationStore, InMemoryEvidenceStore, InMemoryPolicyConfigStore
from db.policy_config import PolicyConfigDB
from resolution.clients.dispatch_client import DispatchClient
from resolution.clients.oms_client import OMSClient
from resolution.config import EXECUTION_MODE_TEST, Settings, load_env_files
from resolution.conversation.service import ConversationService
from resolution.evidence.ledger import EvidenceLedger
from resolution.execution.memory_backend import InMemoryExecutionBackend
from resolution.locks import build_lock
from resolution.orchestration.orchestrator import ActionOrchestrator

logger = logging.getLogger(__name__)


def _settings(settings: Optional[Settings]) -> Settings:
    if settings is not None:
        return settings
    load_env_files()
    return Settings()


def build_orchestrator(
    settings: Optional[Settings] = None,
    backend: Optional[InMemoryExecutionBackend] = None,
) -> ActionOrchestrator:
    """
    Build an orchestrator for the configured execution mode.

    Args:
        settings: Settings to use; read from the environment when omitted
        backend: In-memory backend to reuse in test mode (a fresh one otherwise)
    """
    settings = _settings(settings)

    if settings.EXECUTION_MODE == EXECUTION_MODE_TEST:
        backend = backend or InMemoryExecutionBackend()
        logger.info("Building orchestrator with in-memory execution backend")
        return ActionOrchestrator(
            oms_client=backend.oms,
            dispatch_client=backend.dispatch,
            evidence_ledger=EvidenceLedger(InMemoryEvidenceStore()),
            policy_store=InMemoryPolicyConfigStore(),
        )

    logger.info(
        f"Building orchestrator: OMS={settings.OMS_API_BASE_URL}, "
        f"Dispatch={settings.DISPATCH_API_BASE_URL}, "
        f"locking={'redis' if settings.REDIS_URL else 'off'}"
    )
    return ActionOrchestrator(
        oms_client=OMSClient(base_url=settings.OMS_API_BASE_URL, timeout=settings.OMS_TIMEOUT_SECONDS),
        dispatch_client=DispatchClient(
            base_url=settings.DISPATCH_API_BASE_URL,
            timeout=settings.DISPATCH_TIMEOUT_SECONDS,
        ),
        evidence_ledger=EvidenceLedger(
            EvidenceDB(
                table_name=settings.EVIDENCE_TABLE,
                region_name=settings.AWS_REGION,
                timeout=settings.STORE_TIMEOUT_SECONDS,
            )
        ),
        policy_store=PolicyConfigDB(
            table_name=settings.POLICY_TABLE,
            region_name=settings.AWS_REGION,
            timeout=settings.STORE_TIMEOUT_SECONDS,
        ),
        shipment_lock=build_lock(
            settings.REDIS_URL,
            ttl_seconds=settings.LOCK_TTL_SECONDS,
            wait_seconds=settings.LOCK_WAIT_SECONDS,
        ),
    )


def build_conversation_service(settings: Optional[Settings] = None) -> ConversationService:
    settings = _settings(settings)

    if settings.EXECUTION_MODE == EXECUTION_MODE_TEST:
        return ConversationService(InMemoryConversationStore())

    store = ConversationDB(
        table_name=settings.CONVERSATION_TABLE,
        region_name=settings.AWS_REGION,
        timeout=settings.STORE_TIMEOUT_SECONDS,
    )
    lock = build_lock(
        settings.REDIS_URL,
        ttl_seconds=settings.LOCK_TTL_SECONDS,
        wait_seconds=settings.LOCK_WAIT_SECONDS,
    )
    return ConversationService(store, lock=lock)
