# src/tabletfuzz/contracts/errors.py
"""Exception types that cross the generator / harness / engine boundary.

Three failure classes end a fuzz run, none of them retried:

- GeneratorInvariantError: a sequence violates the abstract state machine.
  Unreachable for generated sequences, so it signals a bug in the guards
  (or a hand-written sequence that is not legal).
- OperationFailedError: a collaborator call failed while applying an op.
- OracleMismatchError: a point lookup disagreed with the oracle. This is the
  failure the harness exists to find.

EngineError and its subclasses are what collaborators raise; the store turns
SQLAlchemy failures into StorageError. The harness wraps any collaborator
failure in OperationFailedError with the position in the sequence.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tabletfuzz.contracts.enums import FuzzOp


class GeneratorInvariantError(Exception):
    """Raised when an op is not legal against the abstract engine state.

    Attributes:
        op: The offending operation tag
        index: Position of the op in the sequence
        reason: Human-readable guard that failed
    """

    def __init__(self, op: FuzzOp, index: int, reason: str) -> None:
        self.op = op
        self.index = index
        self.reason = reason
        super().__init__(f"{op} at index {index} is not legal: {reason}")


class OperationFailedError(Exception):
    """Raised when a collaborator call fails while the harness applies an op.

    The underlying engine error is chained as ``__cause__``.

    Attributes:
        op: Operation tag being applied, or None for the lookup after the
            last op
        index: Position of the op in the sequence
        sequence: The full test case, for reproduction
    """

    def __init__(self, op: FuzzOp | None, index: int, sequence: Sequence[FuzzOp], detail: str) -> None:
        self.op = op
        self.index = index
        self.sequence = tuple(sequence)
        if op is None:
            super().__init__(f"final check at index {index} failed: {detail}")
        else:
            super().__init__(f"{op} at index {index} failed: {detail}")


class OracleMismatchError(AssertionError):
    """Raised when the value read back from the tablet differs from the oracle.

    Subclasses AssertionError so test runners report it as a failed check
    rather than an error.

    Attributes:
        expected: Lookup string the oracle predicted
        actual: Lookup string the tablet returned
        index: Position of the op about to be applied when the check failed
            (equal to ``len(sequence)`` for the final check)
        sequence: The full test case, for reproduction
    """

    def __init__(self, expected: str, actual: str, index: int, sequence: Sequence[FuzzOp]) -> None:
        self.expected = expected
        self.actual = actual
        self.index = index
        self.sequence = tuple(sequence)
        super().__init__(f"Row mismatch before op {index}: expected {expected!r}, got {actual!r}")


# =============================================================================
# Collaborator (engine) errors
# =============================================================================


class EngineError(Exception):
    """Base class for failures reported by the tablet engine or its client."""


class RowAlreadyPresentError(EngineError):
    """Raised when an insert targets a key that already has a live row."""

    def __init__(self, key: int) -> None:
        self.key = key
        super().__init__(f"key already present: {key}")


class RowNotFoundError(EngineError):
    """Raised when an update or delete targets a key with no live row."""

    def __init__(self, key: int) -> None:
        self.key = key
        super().__init__(f"key not found: {key}")


class CorruptionError(EngineError):
    """Raised when tablet storage is internally inconsistent.

    Example: two rowsets both hold a live version of the same key.
    """


class TabletServerNotRunningError(EngineError):
    """Raised when a call needs the tablet server but it is shut down."""


class TableNotFoundError(EngineError):
    """Raised when a table name is not known to the cluster."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(f"table not found: {table_name}")


class TableAlreadyExistsError(EngineError):
    """Raised when a table name is already hosted by the tablet server."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(f"table already exists: {table_name}")


class StorageError(EngineError):
    """Raised when the durable tablet store fails.

    The SQLAlchemy error is chained as ``__cause__``.
    """
