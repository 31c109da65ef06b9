# src/tabletfuzz/contracts/engine.py
"""Protocols for the collaborators the fuzz harness drives.

The harness never reaches into storage internals. It needs three narrow
surfaces:

- RowClient: stage single-row mutations, commit them, read the row back
- TabletMaintenance: administrative flush/compaction calls on the tablet
- ClusterBootstrap: bring up a server, a table and a client, and restart

Every call blocks until done. Maintenance calls are no-ops when there is
nothing to flush or compact. Failures are raised as
``tabletfuzz.contracts.errors.EngineError`` subclasses.

Canonical row strings are opaque to the harness and compared literally:
mutations return the staged row (``""`` for a delete), lookups return the
row wrapped in parentheses, or ``"()"`` when it does not exist.
"""

from typing import Protocol, runtime_checkable

from tabletfuzz.contracts.enums import CompactionKind


@runtime_checkable
class RowClient(Protocol):
    """Client session bound to one table, in manual-flush mode."""

    def create_row(self, key: int, value: int | None) -> str:
        """Stage an insert, returning the canonical string of the new row."""
        ...

    def update_row(self, key: int, value: int | None) -> str:
        """Stage an update, returning the canonical string of the new row."""
        ...

    def delete_row(self, key: int) -> str:
        """Stage a delete, returning the empty string."""
        ...

    def commit_pending_mutations(self) -> None:
        """Apply all staged mutations atomically.

        Existence failures of staged mutations (insert of a present key,
        update/delete of a missing key) surface here, and nothing is applied.
        """
        ...

    def lookup_row(self, key: int) -> str:
        """Point read of ``key``. Returns ``"()"`` when absent."""
        ...


@runtime_checkable
class TabletMaintenance(Protocol):
    """Administrative maintenance calls on the single tablet under test."""

    def flush_fast_store(self) -> None:
        """Flush the in-memory row store to a new immutable rowset."""
        ...

    def flush_largest_delta_store(self) -> None:
        """Flush the largest in-memory delta store to a delta file."""
        ...

    def compact_worst_deltas(self, kind: CompactionKind) -> None:
        """Run a minor or major delta compaction on the worst rowset."""
        ...

    def compact_all(self) -> None:
        """Merge every immutable rowset into one."""
        ...


@runtime_checkable
class ClusterBootstrap(Protocol):
    """Provisioning surface: one server, one table, clients, restarts."""

    def start(self) -> None: ...

    def shutdown(self) -> None: ...

    def restart_tablet_server(self) -> None:
        """Restart the tablet server, or start it if it is not running."""
        ...

    def create_table(self, table_name: str) -> None:
        """Create the two-column (key INT32 PK, val INT32 NULL) table."""
        ...

    def lookup_tablet(self) -> TabletMaintenance:
        """Locate the single tablet hosted by the server."""
        ...

    def new_row_client(self, table_name: str) -> RowClient:
        """Open ``table_name`` and return a manual-flush client session."""
        ...
