"""
Execution Backends

Execution is environment-dependent, orchestration is not: production uses
the HTTP adapters, test mode uses the in-memory backend.
"""

from resolution.execution.memory_backend import (
    InMemoryDispatch,
    InMemoryExecutionBackend,
    InMemoryOMS,
    ShipmentTable,
)

__all__ = [
    "InMemoryDispatch",
    "InMemoryExecutionBackend",
    "InMemoryOMS",
    "ShipmentTable",
]
