# src/tabletfuzz/fuzz/executor.py
"""Translate fuzz ops into collaborator calls.

The executor owns the value counter: every INSERT and UPDATE takes the next
integer, stored as NULL when odd and as itself when even, so each mutation
of a run is distinguishable in logs. The canonical string the client hands
back for that mutation is what the harness stages in its oracle, so the
oracle and the engine can never disagree on encoding.
"""

from __future__ import annotations

from tabletfuzz.contracts.engine import ClusterBootstrap, RowClient, TabletMaintenance
from tabletfuzz.contracts.enums import CompactionKind, FuzzOp
from tabletfuzz.core.logging import get_logger

logger = get_logger(__name__)


def encode_value(counter: int) -> int | None:
    """Odd counters are stored as NULL, even ones as themselves."""
    return None if counter & 1 else counter


class OperationExecutor:
    """Applies one fuzz op at a time against a cluster's row client and tablet.

    Args:
        cluster: Bootstrapped cluster hosting the table under test.
        table_name: Table the row client is bound to.
        row_key: Primary key of the single row under test.
    """

    def __init__(self, cluster: ClusterBootstrap, table_name: str, *, row_key: int = 1) -> None:
        self._cluster = cluster
        self._row_key = row_key
        self._client: RowClient = cluster.new_row_client(table_name)
        self._tablet: TabletMaintenance = cluster.lookup_tablet()
        self._next_value = 0

    @property
    def row_key(self) -> int:
        return self._row_key

    @property
    def values_used(self) -> int:
        """How many mutation values have been handed out so far."""
        return self._next_value

    def _take_value(self) -> int | None:
        value = encode_value(self._next_value)
        self._next_value += 1
        return value

    def lookup(self) -> str:
        return self._client.lookup_row(self._row_key)

    def execute(self, op: FuzzOp) -> str | None:
        """Apply ``op``.

        Returns:
            The row's new canonical string for INSERT/UPDATE/DELETE, None for
            every other op.

        Raises:
            EngineError: Whatever the collaborator raised. Not retried.
        """
        match op:
            case FuzzOp.INSERT:
                return self._client.create_row(self._row_key, self._take_value())
            case FuzzOp.UPDATE:
                return self._client.update_row(self._row_key, self._take_value())
            case FuzzOp.DELETE:
                return self._client.delete_row(self._row_key)
            case FuzzOp.FLUSH_OPS:
                self._client.commit_pending_mutations()
            case FuzzOp.FLUSH_TABLET:
                self._tablet.flush_fast_store()
            case FuzzOp.FLUSH_DELTAS:
                self._tablet.flush_largest_delta_store()
            case FuzzOp.MINOR_COMPACT_DELTAS:
                self._tablet.compact_worst_deltas(CompactionKind.MINOR)
            case FuzzOp.MAJOR_COMPACT_DELTAS:
                self._tablet.compact_worst_deltas(CompactionKind.MAJOR)
            case FuzzOp.COMPACT_TABLET:
                self._tablet.compact_all()
            case FuzzOp.RESTART_TS:
                self._cluster.restart_tablet_server()
                # The old peer points at the pre-restart tablet
                self._tablet = self._cluster.lookup_tablet()
            case _:
                raise ValueError(f"Unknown fuzz op: {op!r}")
        return None
