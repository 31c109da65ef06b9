# src/tabletfuzz/fuzz/harness.py
"""Oracle-checked replay of a fuzz test case.

Before every op the harness reads the row back and compares it with the
oracle's committed value. Mutations only stage a pending value; FLUSH_OPS
promotes it. Maintenance ops and restarts must be invisible to readers, so
they never touch the oracle.

The full case is logged before anything runs, in the form
``dump_test_case`` produces, so a failing random case can be pasted into a
regression test as-is.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from tabletfuzz.contracts.enums import MUTATION_OPS, FuzzOp
from tabletfuzz.contracts.errors import EngineError, OperationFailedError, OracleMismatchError
from tabletfuzz.core.logging import get_logger
from tabletfuzz.fuzz.executor import OperationExecutor
from tabletfuzz.fuzz.generator import dump_test_case
from tabletfuzz.fuzz.oracle import RowOracle

logger = get_logger(__name__)


class FuzzHarness:
    """Drives an OperationExecutor through a test case and checks every read."""

    def __init__(self, executor: OperationExecutor) -> None:
        self._executor = executor
        self._oracle = RowOracle()

    @property
    def oracle(self) -> RowOracle:
        return self._oracle

    def run_fuzz_case(self, ops: Sequence[FuzzOp], update_multiplier: int = 1) -> None:
        """Apply ``ops`` in order, verifying the row before each op and at the end.

        Args:
            ops: The test case.
            update_multiplier: How many times each UPDATE is applied in a
                row; only the last value is staged. Large values produce
                huge batches spanning many delta records.

        Raises:
            OracleMismatchError: A read disagreed with the oracle.
            OperationFailedError: A collaborator call failed, whatever it
                raised. The original exception is chained as ``__cause__``.
        """
        if update_multiplier < 1:
            raise ValueError(f"update_multiplier must be >= 1, got {update_multiplier}")

        ops = tuple(ops)
        logger.info(
            "test case",
            length=len(ops),
            update_multiplier=update_multiplier,
            case="\n" + dump_test_case(ops),
        )

        self._oracle.reset()
        for index, op in enumerate(ops):
            self._verify(index, ops)
            logger.debug("applying op", index=index, op=op.name)
            try:
                self._apply(op, update_multiplier)
            except Exception as e:
                logger.error(
                    "operation failed",
                    index=index,
                    op=op.name,
                    error=str(e),
                    error_type=type(e).__name__,
                    case="\n" + dump_test_case(ops),
                )
                raise OperationFailedError(op, index, ops, f"{type(e).__name__}: {e}") from e
        self._verify(len(ops), ops)

        counts = Counter(op.name for op in ops)
        logger.info("test case passed", length=len(ops), op_counts=dict(sorted(counts.items())))

    def _apply(self, op: FuzzOp, update_multiplier: int) -> None:
        if op is FuzzOp.UPDATE:
            for _ in range(update_multiplier):
                self._stage(self._executor.execute(op))
        elif op in MUTATION_OPS:
            self._stage(self._executor.execute(op))
        elif op is FuzzOp.FLUSH_OPS:
            self._executor.execute(op)
            self._oracle.commit()
        else:
            self._executor.execute(op)

    def _stage(self, value: str | None) -> None:
        if value is None:
            raise EngineError("mutation returned no row value")
        self._oracle.stage(value)

    def _verify(self, index: int, ops: tuple[FuzzOp, ...]) -> None:
        expected = self._oracle.expected_lookup()
        try:
            actual = self._executor.lookup()
        except Exception as e:
            op = ops[index] if index < len(ops) else None
            logger.error("lookup failed", index=index, error=str(e), error_type=type(e).__name__)
            raise OperationFailedError(op, index, ops, f"lookup failed: {type(e).__name__}: {e}") from e
        if actual != expected:
            logger.error(
                "row mismatch",
                index=index,
                expected=expected,
                actual=actual,
                case="\n" + dump_test_case(ops),
            )
            raise OracleMismatchError(expected, actual, index, ops)
