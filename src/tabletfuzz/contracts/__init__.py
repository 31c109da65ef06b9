# src/tabletfuzz/contracts/__init__.py
"""Shared contracts for cross-boundary types.

This package is a LEAF MODULE: it imports nothing from core, fuzz or engine.

Import patterns:
    from tabletfuzz.contracts import FuzzOp, OracleMismatchError, RowClient
"""

from tabletfuzz.contracts.engine import ClusterBootstrap, RowClient, TabletMaintenance
from tabletfuzz.contracts.enums import (
    BASE_OPS,
    MAINTENANCE_OPS,
    MUTATION_OPS,
    RECOVERY_OPS,
    CompactionKind,
    FuzzOp,
    MutationType,
    StoreKind,
)
from tabletfuzz.contracts.errors import (
    CorruptionError,
    EngineError,
    GeneratorInvariantError,
    OperationFailedError,
    OracleMismatchError,
    RowAlreadyPresentError,
    RowNotFoundError,
    StorageError,
    TableAlreadyExistsError,
    TableNotFoundError,
    TabletServerNotRunningError,
)

__all__ = [
    "BASE_OPS",
    "MAINTENANCE_OPS",
    "MUTATION_OPS",
    "RECOVERY_OPS",
    "ClusterBootstrap",
    "CompactionKind",
    "CorruptionError",
    "EngineError",
    "FuzzOp",
    "GeneratorInvariantError",
    "MutationType",
    "OperationFailedError",
    "OracleMismatchError",
    "RowAlreadyPresentError",
    "RowClient",
    "RowNotFoundError",
    "StorageError",
    "StoreKind",
    "TableAlreadyExistsError",
    "TableNotFoundError",
    "TabletMaintenance",
    "TabletServerNotRunningError",
]
