# src/tabletfuzz/contracts/enums.py
"""Operation tags and maintenance kinds shared by generator, executor and engine."""

from enum import StrEnum


class FuzzOp(StrEnum):
    """One step of a fuzz test case.

    Values are the stable names used in dumped test cases, so a logged case
    can be pasted back as a list literal of ``FuzzOp`` members.
    """

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    FLUSH_OPS = "FLUSH_OPS"
    FLUSH_TABLET = "FLUSH_TABLET"
    FLUSH_DELTAS = "FLUSH_DELTAS"
    MINOR_COMPACT_DELTAS = "MINOR_COMPACT_DELTAS"
    MAJOR_COMPACT_DELTAS = "MAJOR_COMPACT_DELTAS"
    COMPACT_TABLET = "COMPACT_TABLET"
    RESTART_TS = "RESTART_TS"


# The base alphabet the generator samples from. RESTART_TS is only drawn
# when the recovery variant is requested.
BASE_OPS: tuple[FuzzOp, ...] = (
    FuzzOp.INSERT,
    FuzzOp.UPDATE,
    FuzzOp.DELETE,
    FuzzOp.FLUSH_OPS,
    FuzzOp.FLUSH_TABLET,
    FuzzOp.FLUSH_DELTAS,
    FuzzOp.MINOR_COMPACT_DELTAS,
    FuzzOp.MAJOR_COMPACT_DELTAS,
    FuzzOp.COMPACT_TABLET,
)

RECOVERY_OPS: tuple[FuzzOp, ...] = (*BASE_OPS, FuzzOp.RESTART_TS)

MUTATION_OPS: frozenset[FuzzOp] = frozenset({FuzzOp.INSERT, FuzzOp.UPDATE, FuzzOp.DELETE})

MAINTENANCE_OPS: frozenset[FuzzOp] = frozenset(
    {
        FuzzOp.FLUSH_TABLET,
        FuzzOp.FLUSH_DELTAS,
        FuzzOp.MINOR_COMPACT_DELTAS,
        FuzzOp.MAJOR_COMPACT_DELTAS,
        FuzzOp.COMPACT_TABLET,
    }
)


class CompactionKind(StrEnum):
    """Scope of a delta compaction on a single DiskRowSet.

    Values:
        MINOR: Merge several delta files into one, base data untouched
        MAJOR: Fold delta-file updates into the base data
    """

    MINOR = "minor"
    MAJOR = "major"


class MutationType(StrEnum):
    """Kind of a row operation as stored in the write-ahead log and deltas.

    Stored in the database (wal_entries.op_type).
    """

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class StoreKind(StrEnum):
    """Which in-tablet store a logged row operation was applied to.

    Stored in the database (wal_entries.target_kind).
    """

    MRS = "mrs"
    DRS = "drs"
