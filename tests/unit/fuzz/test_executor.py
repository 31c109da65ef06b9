# tests/unit/fuzz/test_executor.py
"""Unit tests for OperationExecutor against the reference cluster."""

from __future__ import annotations

import pytest

from tabletfuzz.contracts.enums import FuzzOp
from tabletfuzz.contracts.errors import RowNotFoundError
from tabletfuzz.engine.cluster import MiniCluster
from tabletfuzz.fuzz.executor import OperationExecutor, encode_value

ROW_0 = "int32 key=1, int32 val=0"


class TestEncodeValue:
    """Odd counters become NULL."""

    @pytest.mark.parametrize(("counter", "expected"), [(0, 0), (1, None), (2, 2), (999, None), (1000, 1000)])
    def test_encoding(self, counter: int, expected: int | None) -> None:
        assert encode_value(counter) == expected


class TestMutations:
    """INSERT/UPDATE/DELETE return the row's new canonical string."""

    def test_insert_takes_first_value(self, executor: OperationExecutor) -> None:
        assert executor.execute(FuzzOp.INSERT) == ROW_0
        assert executor.values_used == 1

    def test_values_alternate_null(self, executor: OperationExecutor) -> None:
        executor.execute(FuzzOp.INSERT)
        assert executor.execute(FuzzOp.UPDATE) == "int32 key=1, int32 val=NULL"
        assert executor.execute(FuzzOp.UPDATE) == "int32 key=1, int32 val=2"

    def test_delete_returns_empty_string(self, executor: OperationExecutor) -> None:
        executor.execute(FuzzOp.INSERT)
        assert executor.execute(FuzzOp.DELETE) == ""
        assert executor.values_used == 1

    def test_mutations_invisible_until_flush_ops(self, executor: OperationExecutor) -> None:
        executor.execute(FuzzOp.INSERT)
        assert executor.lookup() == "()"
        assert executor.execute(FuzzOp.FLUSH_OPS) is None
        assert executor.lookup() == f"({ROW_0})"

    def test_missing_row_error_surfaces_at_flush_ops(self, executor: OperationExecutor) -> None:
        """Existence errors are reported when the batch is sent, not when staged."""
        assert executor.execute(FuzzOp.UPDATE) == "int32 key=1, int32 val=0"
        with pytest.raises(RowNotFoundError):
            executor.execute(FuzzOp.FLUSH_OPS)
        assert executor.lookup() == "()"

    def test_custom_row_key(self, cluster: MiniCluster) -> None:
        executor = OperationExecutor(cluster, "table", row_key=7)
        assert executor.row_key == 7
        assert executor.execute(FuzzOp.INSERT) == "int32 key=7, int32 val=0"


class TestMaintenance:
    """Maintenance ops return None and never change what a reader sees."""

    @pytest.mark.parametrize(
        "op",
        [
            FuzzOp.FLUSH_TABLET,
            FuzzOp.FLUSH_DELTAS,
            FuzzOp.MINOR_COMPACT_DELTAS,
            FuzzOp.MAJOR_COMPACT_DELTAS,
            FuzzOp.COMPACT_TABLET,
            FuzzOp.RESTART_TS,
        ],
    )
    def test_maintenance_op_is_transparent(self, executor: OperationExecutor, op: FuzzOp) -> None:
        executor.execute(FuzzOp.INSERT)
        executor.execute(FuzzOp.FLUSH_OPS)
        executor.execute(FuzzOp.FLUSH_TABLET)
        executor.execute(FuzzOp.UPDATE)
        executor.execute(FuzzOp.FLUSH_OPS)
        before = executor.lookup()

        assert executor.execute(op) is None
        assert executor.lookup() == before == "(int32 key=1, int32 val=NULL)"

    @pytest.mark.parametrize(
        "op",
        [
            FuzzOp.FLUSH_TABLET,
            FuzzOp.FLUSH_DELTAS,
            FuzzOp.MINOR_COMPACT_DELTAS,
            FuzzOp.MAJOR_COMPACT_DELTAS,
            FuzzOp.COMPACT_TABLET,
            FuzzOp.RESTART_TS,
        ],
    )
    @pytest.mark.parametrize(
        ("setup", "expected"),
        [
            ([FuzzOp.INSERT, FuzzOp.FLUSH_OPS], f"({ROW_0})"),
            (
                [FuzzOp.INSERT, FuzzOp.FLUSH_OPS, FuzzOp.FLUSH_TABLET, FuzzOp.UPDATE, FuzzOp.FLUSH_OPS],
                "(int32 key=1, int32 val=NULL)",
            ),
            ([FuzzOp.INSERT, FuzzOp.FLUSH_OPS, FuzzOp.FLUSH_TABLET, FuzzOp.DELETE, FuzzOp.FLUSH_OPS], "()"),
        ],
        ids=["row_in_mrs", "update_in_dms", "delete_in_dms"],
    )
    def test_repeated_maintenance_is_idempotent(
        self,
        executor: OperationExecutor,
        op: FuzzOp,
        setup: list[FuzzOp],
        expected: str,
    ) -> None:
        """Running the same maintenance op twice in a row is unobservable both times."""
        for setup_op in setup:
            executor.execute(setup_op)
        assert executor.lookup() == expected

        executor.execute(op)
        assert executor.lookup() == expected
        executor.execute(op)
        assert executor.lookup() == expected

    def test_maintenance_on_empty_tablet_is_noop(self, executor: OperationExecutor) -> None:
        for op in (FuzzOp.FLUSH_TABLET, FuzzOp.FLUSH_DELTAS, FuzzOp.COMPACT_TABLET):
            executor.execute(op)
        assert executor.lookup() == "()"

    def test_restart_rebinds_tablet(self, cluster: MiniCluster, executor: OperationExecutor) -> None:
        """After a restart, maintenance goes to the new tablet incarnation."""
        executor.execute(FuzzOp.INSERT)
        executor.execute(FuzzOp.FLUSH_OPS)
        executor.execute(FuzzOp.RESTART_TS)
        executor.execute(FuzzOp.FLUSH_TABLET)

        tablet = cluster.lookup_tablet().tablet
        assert len(tablet.rowsets) == 1
        assert tablet.mrs.is_empty()
        assert executor.lookup() == f"({ROW_0})"

    def test_unknown_op_rejected(self, executor: OperationExecutor) -> None:
        with pytest.raises(ValueError, match="Unknown fuzz op"):
            executor.execute("BOGUS")  # type: ignore[arg-type]
