# src/tabletfuzz/fuzz/runner.py
"""End-to-end fuzz run: settings in, generated case run against a fresh cluster.

Usage:
    settings = load_config(preset="quick")
    report = run_fuzz(settings)
    print(report.seed, len(report.ops))
"""

from __future__ import annotations

import random as random_module
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from tabletfuzz.contracts.enums import FuzzOp
from tabletfuzz.core.config import FuzzSettings
from tabletfuzz.core.logging import get_logger
from tabletfuzz.engine.cluster import MiniCluster
from tabletfuzz.fuzz.executor import OperationExecutor
from tabletfuzz.fuzz.generator import generate_test_case
from tabletfuzz.fuzz.harness import FuzzHarness

logger = get_logger(__name__)

_SEED_BITS = 32


@dataclass(frozen=True, slots=True)
class FuzzRunReport:
    """Outcome of a passing fuzz run.

    Attributes:
        seed: Generator seed, None when the ops were supplied by the caller
        ops: The case that ran
        update_multiplier: Repeat count applied to each UPDATE
        values_used: Mutation values handed out by the executor
        final_lookup: The row as read back after the last op
    """

    seed: int | None
    ops: tuple[FuzzOp, ...]
    update_multiplier: int
    values_used: int
    final_lookup: str


def draw_seed(rng: random_module.Random | None = None) -> int:
    """Pick a fresh generator seed."""
    rng = rng if rng is not None else random_module.Random()
    return rng.getrandbits(_SEED_BITS)


def run_fuzz(settings: FuzzSettings, ops: Sequence[FuzzOp] | None = None) -> FuzzRunReport:
    """Run one fuzz case against a freshly started reference cluster.

    Args:
        settings: Run settings. The seed is drawn and logged when unset.
        ops: A fixed case to run instead of a generated one.

    Raises:
        OracleMismatchError: A read disagreed with the oracle.
        OperationFailedError: A cluster call failed.
    """
    seed: int | None = None
    if ops is None:
        seed = settings.seed if settings.seed is not None else draw_seed()
        ops = generate_test_case(
            settings.effective_length(),
            seed=seed,
            allow_restarts=settings.allow_restarts,
        )
    ops = tuple(ops)

    table_name = settings.cluster.table_name
    with structlog.contextvars.bound_contextvars(seed=seed, preset=settings.preset_name):
        logger.info(
            "fuzz run starting",
            length=len(ops),
            update_multiplier=settings.update_multiplier,
            allow_restarts=settings.allow_restarts,
            maintenance_manager_enabled=settings.cluster.maintenance_manager_enabled,
        )
        with MiniCluster(settings.cluster) as cluster:
            cluster.create_table(table_name)
            executor = OperationExecutor(cluster, table_name, row_key=settings.row_key)
            FuzzHarness(executor).run_fuzz_case(ops, settings.update_multiplier)
            final_lookup = executor.lookup()

    return FuzzRunReport(
        seed=seed,
        ops=ops,
        update_multiplier=settings.update_multiplier,
        values_used=executor.values_used,
        final_lookup=final_lookup,
    )
