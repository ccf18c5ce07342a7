"""
Resolution Core Configuration

Centralized settings for adapters, stores and locking.
All settings can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv

EXECUTION_MODE_PRODUCTION = "production"
EXECUTION_MODE_TEST = "test"

ExecutionMode = Literal["production", "test"]


def load_env_files(project_root: Optional[Path] = None) -> None:
    """
    Load .env and .env.local from the project root.

    .env.local is loaded last and overrides values from .env. Variables
    already present in the process environment win over .env.
    """
    if project_root is None:
        project_root = Path(__file__).resolve().parent.parent.parent
    env_file = project_root / ".env"
    env_local_file = project_root / ".env.local"

    if env_file.exists():
        load_dotenv(env_file, override=False)
    if env_local_file.exists():
        load_dotenv(env_local_file, override=True)


def get_execution_mode() -> ExecutionMode:
    """
    Get the current execution mode.

    Returns:
        "production" for real adapters and DynamoDB stores, "test" for the
        in-memory backend. Defaults to "production" if CORE_EXECUTION_MODE
        is not set or holds an unknown value.
    """
    mode = os.getenv("CORE_EXECUTION_MODE", EXECUTION_MODE_PRODUCTION)
    if mode not in (EXECUTION_MODE_PRODUCTION, EXECUTION_MODE_TEST):
        return EXECUTION_MODE_PRODUCTION
    return mode  # type: ignore


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


class Settings:
    """
    Settings for the resolution core.

    Values are read from the environment when the instance is created, so a
    fresh Settings() picks up changes made after import.

    Example:
        >>> settings = Settings()
        >>> settings.OMS_TIMEOUT_SECONDS
        10.0
    """

    def __init__(self):
        # Upstream systems
        self.OMS_API_BASE_URL: str = os.getenv("OMS_API_BASE_URL", "http://localhost:4000")
        self.DISPATCH_API_BASE_URL: str = os.getenv("DISPATCH_API_BASE_URL", "http://localhost:4100")
        self.OMS_TIMEOUT_SECONDS: float = _float_env("OMS_TIMEOUT_SECONDS", 10.0)
        self.DISPATCH_TIMEOUT_SECONDS: float = _float_env("DISPATCH_TIMEOUT_SECONDS", 10.0)

        # Stores
        self.AWS_REGION: Optional[str] = os.getenv("AWS_REGION")
        self.EVIDENCE_TABLE: str = os.getenv("EVIDENCE_TABLE", "evidence_packets")
        self.CONVERSATION_TABLE: str = os.getenv("CONVERSATION_TABLE", "conversations")
        self.POLICY_TABLE: str = os.getenv("POLICY_TABLE", "policy_configs")
        self.STORE_TIMEOUT_SECONDS: float = _float_env("STORE_TIMEOUT_SECONDS", 5.0)

        # Advisory locking (disabled when REDIS_URL is unset)
        self.REDIS_URL: Optional[str] = os.getenv("REDIS_URL") or None
        self.LOCK_TTL_SECONDS: float = _float_env("LOCK_TTL_SECONDS", 30.0)
        self.LOCK_WAIT_SECONDS: float = _float_env("LOCK_WAIT_SECONDS", 5.0)

        self.EXECUTION_MODE: ExecutionMode = get_execution_mode()
