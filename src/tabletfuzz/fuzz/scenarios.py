# src/tabletfuzz/fuzz/scenarios.py
"""Hand-written test cases that once broke the tablet, kept as regressions.

The ``fuzz*`` cases are historical random failures, trimmed by hand. They
are not necessarily generator-legal (``fuzz4`` compacts a tablet that has
no DiskRowSet yet), and the harness runs them as-is.
"""

from __future__ import annotations

from dataclasses import dataclass

from tabletfuzz.contracts.enums import FuzzOp


@dataclass(frozen=True, slots=True)
class Scenario:
    """A named regression case and the multiplier it runs with."""

    name: str
    description: str
    ops: tuple[FuzzOp, ...]
    update_multiplier: int = 1


FUZZ1 = Scenario(
    name="fuzz1",
    description="DELETE in a DMS plus a reinsert flushed to a second rowset, then full compaction",
    ops=(
        # Inserted row in a DRS
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        # DELETE lands in the DMS, INSERT in the MRS, which is flushed again
        FuzzOp.DELETE,
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        # Two rowsets hold the key, only the second one live
        FuzzOp.COMPACT_TABLET,
    ),
)

FUZZ2 = Scenario(
    name="fuzz2",
    description="Ghost rows flushed from the MRS, compacted, then deleted and compacted again",
    ops=(
        FuzzOp.INSERT,
        FuzzOp.DELETE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.INSERT,
        FuzzOp.DELETE,
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.COMPACT_TABLET,
        FuzzOp.DELETE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.COMPACT_TABLET,
    ),
)

FUZZ3 = Scenario(
    name="fuzz3",
    description="Dead row in a DMS and a flushed ghost compacted together",
    ops=(
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        # DELETE goes to the DMS of the first rowset
        FuzzOp.DELETE,
        FuzzOp.INSERT,
        FuzzOp.DELETE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.COMPACT_TABLET,
    ),
)

FUZZ4 = Scenario(
    name="fuzz4",
    description="Updates and deletes spread over three rowsets, ending in an all-dead compaction",
    ops=(
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.COMPACT_TABLET,
        FuzzOp.DELETE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.COMPACT_TABLET,
        FuzzOp.INSERT,
        FuzzOp.UPDATE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.DELETE,
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.UPDATE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.UPDATE,
        FuzzOp.DELETE,
        FuzzOp.INSERT,
        FuzzOp.DELETE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.COMPACT_TABLET,
    ),
)

HUGE_UPDATE = Scenario(
    name="huge_update",
    description="One UPDATE applied 1000 times in a single batch; only the last value commits",
    ops=(
        FuzzOp.INSERT,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_TABLET,
        FuzzOp.UPDATE,
        FuzzOp.FLUSH_OPS,
        FuzzOp.FLUSH_DELTAS,
        FuzzOp.MAJOR_COMPACT_DELTAS,
    ),
    update_multiplier=1000,
)

SCENARIOS: dict[str, Scenario] = {
    scenario.name: scenario for scenario in (FUZZ1, FUZZ2, FUZZ3, FUZZ4, HUGE_UPDATE)
}


def get_scenario(name: str) -> Scenario:
    """Look up a scenario by name.

    Raises:
        KeyError: If no scenario has that name (message lists the valid ones).
    """
    try:
        return SCENARIOS[name]
    except KeyError:
        raise KeyError(f"Unknown scenario {name!r}. Available: {sorted(SCENARIOS)}") from None
