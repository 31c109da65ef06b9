# src/tabletfuzz/fuzz/generator.py
"""Random generation of legal single-row fuzz test cases.

The generator walks an abstract model of the tablet. The model does not
store values, only the five facts that decide which ops are legal next:

- exists: the row currently exists (after all emitted ops)
- ops_pending: mutations have been applied to the session but not flushed
- data_in_mrs: the latest insert has not been flushed out of the MemRowSet
- data_in_dms: there are deltas not yet flushed out of a DeltaMemStore
- worth_compacting: a DiskRowSet exists that a full compaction would rewrite

Generation is rejection sampling: draw an op uniformly from the alphabet,
drop the draw if its precondition fails, otherwise emit it and advance the
model. Ops that only act on durably-applied data (flushes, compaction,
restart) are preceded by an implicit FLUSH_OPS whenever mutations are
pending, and that FLUSH_OPS is emitted into the sequence like any other op.

Usage:
    generator = SequenceGenerator(random.Random(seed))
    ops = generator.generate(50)
    log.info("test case", case=dump_test_case(ops))
"""

from __future__ import annotations

import random as random_module
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from tabletfuzz.contracts.enums import BASE_OPS, RECOVERY_OPS, FuzzOp
from tabletfuzz.contracts.errors import GeneratorInvariantError
from tabletfuzz.core.logging import get_logger

logger = get_logger(__name__)

# Ops that must see every staged mutation committed before they run.
IMPLICIT_COMMIT_OPS: frozenset[FuzzOp] = frozenset(
    {
        FuzzOp.FLUSH_TABLET,
        FuzzOp.FLUSH_DELTAS,
        FuzzOp.COMPACT_TABLET,
        FuzzOp.RESTART_TS,
    }
)


@dataclass(frozen=True, slots=True)
class TabletModelState:
    """Abstract engine state the generator uses to keep sequences legal."""

    exists: bool = False
    ops_pending: bool = False
    data_in_mrs: bool = False
    data_in_dms: bool = False
    worth_compacting: bool = False


def precondition_failure(state: TabletModelState, op: FuzzOp) -> str | None:
    """Return why ``op`` may not be drawn in ``state``, or None if it may.

    This is the guard table. It does not cover the implicit commit: an op in
    IMPLICIT_COMMIT_OPS passes here with mutations pending, and the caller
    is responsible for committing first.
    """
    match op:
        case FuzzOp.INSERT:
            return "row already exists" if state.exists else None
        case FuzzOp.UPDATE | FuzzOp.DELETE:
            return None if state.exists else "row does not exist"
        case FuzzOp.FLUSH_OPS:
            return None if state.ops_pending else "no pending ops"
        case FuzzOp.FLUSH_TABLET:
            return None if state.data_in_mrs else "no data in MemRowSet"
        case FuzzOp.COMPACT_TABLET:
            return None if state.worth_compacting else "no DiskRowSet worth compacting"
        case FuzzOp.FLUSH_DELTAS:
            return None if state.data_in_dms else "no data in DeltaMemStore"
        case FuzzOp.MINOR_COMPACT_DELTAS | FuzzOp.MAJOR_COMPACT_DELTAS | FuzzOp.RESTART_TS:
            return None
    raise GeneratorInvariantError(op, -1, "unknown op")


def transition(state: TabletModelState, op: FuzzOp) -> TabletModelState:
    """Advance the model by one op. Pure; assumes the guard passed."""
    match op:
        case FuzzOp.INSERT:
            return replace(state, exists=True, ops_pending=True, data_in_mrs=True)
        case FuzzOp.UPDATE:
            return replace(
                state,
                ops_pending=True,
                data_in_dms=state.data_in_dms or not state.data_in_mrs,
            )
        case FuzzOp.DELETE:
            return replace(
                state,
                exists=False,
                ops_pending=True,
                data_in_dms=state.data_in_dms or not state.data_in_mrs,
            )
        case FuzzOp.FLUSH_OPS:
            return replace(state, ops_pending=False)
        case FuzzOp.FLUSH_TABLET:
            return replace(state, data_in_mrs=False, worth_compacting=True)
        case FuzzOp.COMPACT_TABLET:
            return replace(state, worth_compacting=False)
        case FuzzOp.FLUSH_DELTAS:
            return replace(state, data_in_dms=False)
        case FuzzOp.MINOR_COMPACT_DELTAS | FuzzOp.MAJOR_COMPACT_DELTAS | FuzzOp.RESTART_TS:
            return state
    raise GeneratorInvariantError(op, -1, "unknown op")


def legal_ops(state: TabletModelState, alphabet: Iterable[FuzzOp] = BASE_OPS) -> list[FuzzOp]:
    """Ops from ``alphabet`` whose precondition holds in ``state``."""
    return [op for op in alphabet if precondition_failure(state, op) is None]


class SequenceGenerator:
    """Rejection-sampling generator of legal fuzz test cases.

    Args:
        rng: Random source (default: a fresh unseeded ``random.Random``).
        allow_restarts: Add RESTART_TS to the alphabet (recovery variant).
    """

    def __init__(
        self,
        rng: random_module.Random | None = None,
        *,
        allow_restarts: bool = False,
    ) -> None:
        self._rng = rng if rng is not None else random_module.Random()
        self._alphabet: tuple[FuzzOp, ...] = RECOVERY_OPS if allow_restarts else BASE_OPS

    @property
    def alphabet(self) -> tuple[FuzzOp, ...]:
        return self._alphabet

    def generate(self, length: int) -> list[FuzzOp]:
        """Generate a legal sequence of at least ``length`` ops.

        Stops as soon as the sequence reaches ``length``. An implicit
        FLUSH_OPS emitted together with its maintenance op can overshoot by
        one element.
        """
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")

        ops: list[FuzzOp] = []
        state = TabletModelState()
        draws = 0
        while len(ops) < length:
            op = self._rng.choice(self._alphabet)
            draws += 1
            if precondition_failure(state, op) is not None:
                continue
            if op in IMPLICIT_COMMIT_OPS and state.ops_pending:
                ops.append(FuzzOp.FLUSH_OPS)
                state = transition(state, FuzzOp.FLUSH_OPS)
            ops.append(op)
            state = transition(state, op)

        logger.debug("test case generated", length=len(ops), draws=draws)
        return ops


def generate_test_case(
    length: int,
    *,
    seed: int | None = None,
    allow_restarts: bool = False,
) -> list[FuzzOp]:
    """Convenience wrapper: one generated case from an optional seed."""
    generator = SequenceGenerator(random_module.Random(seed), allow_restarts=allow_restarts)
    return generator.generate(length)


def check_sequence_legal(ops: Sequence[FuzzOp], *, allow_restarts: bool = False) -> TabletModelState:
    """Replay ``ops`` through the model, failing at the first illegal op.

    Stricter than the raw guard table: an op that needs an implicit commit
    is illegal while mutations are still pending, because the generator
    always emits the FLUSH_OPS explicitly.

    Returns:
        The model state after the last op.

    Raises:
        GeneratorInvariantError: At the first op that could not have been
            generated.
    """
    state = TabletModelState()
    for index, op in enumerate(ops):
        if op == FuzzOp.RESTART_TS and not allow_restarts:
            raise GeneratorInvariantError(op, index, "restarts not enabled")
        reason = precondition_failure(state, op)
        if reason is None and op in IMPLICIT_COMMIT_OPS and state.ops_pending:
            reason = "pending ops not committed first"
        if reason is not None:
            raise GeneratorInvariantError(op, index, reason)
        state = transition(state, op)
    return state


# =============================================================================
# Test case dump / parse
# =============================================================================

_TOKEN_SPLIT = re.compile(r"[\s,\[\]]+")


def dump_test_case(ops: Sequence[FuzzOp]) -> str:
    """Render a test case so it can be pasted back as a list literal.

    One ``FuzzOp.<NAME>`` per line, joined with ``",\\n"``.
    """
    return ",\n".join(f"FuzzOp.{op.name}" for op in ops)


def parse_test_case(text: str) -> list[FuzzOp]:
    """Parse a dumped test case back into ops.

    Accepts ``FuzzOp.INSERT``, bare ``INSERT`` and legacy ``TEST_INSERT``
    tokens separated by commas, whitespace or brackets. ``#`` starts a
    comment running to the end of the line.

    Raises:
        ValueError: On an unknown op name.
    """
    ops: list[FuzzOp] = []
    for line in text.splitlines():
        line = line.split("#", 1)[0]
        for token in _TOKEN_SPLIT.split(line):
            if not token:
                continue
            name = token.removeprefix("FuzzOp.").removeprefix("TEST_")
            try:
                ops.append(FuzzOp[name])
            except KeyError:
                raise ValueError(f"Unknown op {token!r}. Valid ops: {[op.name for op in FuzzOp]}") from None
    return ops
