# src/tabletfuzz/engine/tablet.py
"""A single tablet: write path, point reads, flushes, compactions, bootstrap.

Write path:
    1. validate the whole batch against current row existence
    2. plan each op (assign op id, pick the target store)
    3. append the planned entries to the write-ahead log
    4. apply them to the MemRowSet / DeltaMemStores

Inserts always go to the MemRowSet. Updates and deletes go to wherever the
row is live: in place in the MemRowSet, or into the owning DiskRowSet's
DeltaMemStore.

Bootstrap (after a tablet server restart) loads the durable DiskRowSets and
replays every logged op whose id is not folded into one of them, sending it
to the store it originally targeted. Ops that targeted a MemRowSet go to the
fresh MemRowSet; an op that targeted a flushed MemRowSet is always durable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from tabletfuzz.contracts.enums import CompactionKind, MutationType, StoreKind
from tabletfuzz.contracts.errors import CorruptionError, RowAlreadyPresentError, RowNotFoundError
from tabletfuzz.core.logging import get_logger
from tabletfuzz.engine.rowsets import DeltaEntry, DiskRowSet, MemRowSet
from tabletfuzz.engine.schema import EMPTY_ROW, TableSchema
from tabletfuzz.engine.store import TabletStore, WalEntry

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RowOperation:
    """A client-side row operation waiting in a session buffer."""

    op_type: MutationType
    key: int
    value: int | None = None


class Tablet:
    """The only partition of the table under test."""

    def __init__(
        self,
        tablet_id: str,
        table_name: str,
        schema: TableSchema,
        store: TabletStore,
    ) -> None:
        self.tablet_id = tablet_id
        self.table_name = table_name
        self.schema = schema
        self._store = store
        self._next_mrs_id = 0
        self._mrs = self._new_mrs()
        self._rowsets: dict[int, DiskRowSet] = {}
        self._next_op_id = 1
        self._next_batch_id = 1

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def mrs(self) -> MemRowSet:
        return self._mrs

    @property
    def rowsets(self) -> list[DiskRowSet]:
        """DiskRowSets in id order."""
        return [self._rowsets[rowset_id] for rowset_id in sorted(self._rowsets)]

    def _new_mrs(self) -> MemRowSet:
        mrs = MemRowSet(self._next_mrs_id)
        self._next_mrs_id += 1
        return mrs

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _locate(self, key: int) -> tuple[StoreKind, int, int | None] | None:
        """Find the single store holding a live version of ``key``.

        Returns:
            (store kind, store id, current value), or None if not live.

        Raises:
            CorruptionError: If more than one store holds a live version.
        """
        found: list[tuple[StoreKind, int, int | None]] = []
        mrs_row = self._mrs.get_live(key)
        if mrs_row is not None:
            found.append((StoreKind.MRS, self._mrs.mrs_id, mrs_row.value))
        for rowset in self.rowsets:
            live, value = rowset.resolve(key)
            if live:
                found.append((StoreKind.DRS, rowset.rowset_id, value))
        if len(found) > 1:
            holders = ", ".join(f"{kind}:{store_id}" for kind, store_id, _ in found)
            raise CorruptionError(f"key {key} is live in more than one store ({holders})")
        return found[0] if found else None

    def lookup(self, key: int) -> str:
        """Point read, rendered as a canonical row string or ``"()"``."""
        located = self._locate(key)
        if located is None:
            return EMPTY_ROW
        return self.schema.render_row(key, located[2])

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def apply_batch(self, operations: Sequence[RowOperation]) -> list[WalEntry]:
        """Validate, log and apply a batch atomically.

        Raises:
            RowAlreadyPresentError: An insert targets a live key.
            RowNotFoundError: An update or delete targets a missing key.
        """
        entries = self._plan_batch(operations)
        self._store.append_wal(self.tablet_id, entries)
        for entry in entries:
            self._apply_entry(entry)
        self._next_batch_id += 1
        return entries

    def _plan_batch(self, operations: Sequence[RowOperation]) -> list[WalEntry]:
        # Location per key as the batch would leave it; None means not live
        locations: dict[int, tuple[StoreKind, int] | None] = {}
        entries: list[WalEntry] = []
        op_id = self._next_op_id
        for operation in operations:
            if operation.key not in locations:
                located = self._locate(operation.key)
                locations[operation.key] = None if located is None else (located[0], located[1])
            location = locations[operation.key]

            if operation.op_type is MutationType.INSERT:
                if location is not None:
                    raise RowAlreadyPresentError(operation.key)
                location = (StoreKind.MRS, self._mrs.mrs_id)
                locations[operation.key] = location
            else:
                if location is None:
                    raise RowNotFoundError(operation.key)
                if operation.op_type is MutationType.DELETE:
                    locations[operation.key] = None

            entries.append(
                WalEntry(
                    op_id=op_id,
                    batch_id=self._next_batch_id,
                    op_type=operation.op_type,
                    key=operation.key,
                    value=None if operation.op_type is MutationType.DELETE else operation.value,
                    target_kind=location[0],
                    target_id=location[1],
                )
            )
            op_id += 1
        self._next_op_id = op_id
        return entries

    def _apply_entry(self, entry: WalEntry) -> None:
        if entry.op_type is MutationType.INSERT:
            self._mrs.insert(entry.key, entry.value, entry.op_id)
        elif entry.target_kind is StoreKind.MRS:
            self._mrs.mutate(entry.key, entry.op_type, entry.value, entry.op_id)
        else:
            rowset = self._rowsets.get(entry.target_id)
            if rowset is None:
                raise CorruptionError(f"op {entry.op_id} targets missing DiskRowSet {entry.target_id}")
            rowset.dms.append(DeltaEntry(entry.key, entry.op_id, entry.op_type, entry.value))

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def flush(self) -> None:
        """Flush the MemRowSet into a new DiskRowSet. No-op when empty.

        Deleted ghost rows are written too, carrying their DELETE as the
        first REDO delta file.
        """
        old_mrs = self._mrs
        self._mrs = self._new_mrs()
        if old_mrs.is_empty():
            return

        base: dict[int, int | None] = {}
        deletes: list[DeltaEntry] = []
        op_ids: set[int] = set()
        for row in old_mrs.rows():
            base[row.key] = row.value
            op_ids.update(row.op_ids)
            if row.delete_op_id is not None:
                deletes.append(DeltaEntry(row.key, row.delete_op_id, MutationType.DELETE))

        rowset = DiskRowSet(
            rowset_id=self._store.allocate_rowset_id(self.tablet_id),
            base=base,
            delta_files=[tuple(deletes)] if deletes else [],
            durable_op_ids=op_ids,
        )
        self._store.replace_rowsets(self.tablet_id, written=[rowset])
        self._rowsets[rowset.rowset_id] = rowset
        logger.debug(
            "memrowset flushed",
            tablet_id=self.tablet_id,
            mrs_id=old_mrs.mrs_id,
            rowset_id=rowset.rowset_id,
            rows=len(base),
        )

    def flush_biggest_dms(self) -> None:
        """Flush the largest DeltaMemStore into a delta file. No-op if all are empty."""
        candidates = [rowset for rowset in self.rowsets if len(rowset.dms) > 0]
        if not candidates:
            return
        rowset = max(candidates, key=lambda r: len(r.dms))
        flushed = rowset.flush_dms()
        self._store.replace_rowsets(self.tablet_id, written=[rowset])
        logger.debug("deltamemstore flushed", tablet_id=self.tablet_id, rowset_id=rowset.rowset_id, deltas=flushed)

    def biggest_dms_size(self) -> int:
        return max((len(rowset.dms) for rowset in self._rowsets.values()), default=0)

    def compact_worst_deltas(self, kind: CompactionKind) -> None:
        """Delta-compact the rowset with the most delta files.

        A no-op when no rowset has enough delta files for ``kind``.
        """
        rowsets = self.rowsets
        if not rowsets:
            return
        worst = max(rowsets, key=lambda r: len(r.delta_files))
        if kind is CompactionKind.MINOR:
            changed = worst.minor_compact()
        else:
            changed = worst.major_compact()
        if changed:
            self._store.replace_rowsets(self.tablet_id, written=[worst])
            logger.debug("deltas compacted", tablet_id=self.tablet_id, rowset_id=worst.rowset_id, kind=kind.value)

    def compact(self) -> None:
        """Merge every DiskRowSet (including DeltaMemStores) into one.

        Dead rows are dropped. The output rowset is written even when it has
        no rows, since it carries the durable op ids of its inputs.

        Raises:
            CorruptionError: If a key is live in more than one input rowset.
        """
        inputs = self.rowsets
        if not inputs:
            return

        base: dict[int, int | None] = {}
        op_ids: set[int] = set()
        for rowset in inputs:
            op_ids.update(rowset.durable_op_ids)
            op_ids.update(rowset.dms.op_ids())
            for key in rowset.keys():
                live, value = rowset.resolve(key)
                if not live:
                    continue
                if key in base:
                    raise CorruptionError(f"key {key} is live in more than one DiskRowSet during compaction")
                base[key] = value

        output = DiskRowSet(
            rowset_id=self._store.allocate_rowset_id(self.tablet_id),
            base=base,
            durable_op_ids=op_ids,
        )
        removed = [rowset.rowset_id for rowset in inputs]
        self._store.replace_rowsets(self.tablet_id, removed=removed, written=[output])
        self._rowsets = {output.rowset_id: output}
        logger.debug(
            "tablet compacted",
            tablet_id=self.tablet_id,
            inputs=removed,
            rowset_id=output.rowset_id,
            rows=len(base),
        )

    # -------------------------------------------------------------------------
    # Bootstrap
    # -------------------------------------------------------------------------

    def bootstrap(self) -> int:
        """Load durable rowsets and replay the log. Returns the number of ops replayed."""
        self._rowsets = {rowset.rowset_id: rowset for rowset in self._store.load_rowsets(self.tablet_id)}
        durable: set[int] = set()
        for rowset in self._rowsets.values():
            durable.update(rowset.durable_op_ids)

        replayed = 0
        last_op_id = 0
        last_batch_id = 0
        for entry in self._store.read_wal(self.tablet_id):
            last_op_id = entry.op_id
            last_batch_id = entry.batch_id
            if entry.op_id in durable:
                continue
            self._apply_entry(entry)
            replayed += 1

        self._next_op_id = last_op_id + 1
        self._next_batch_id = last_batch_id + 1
        logger.debug(
            "tablet bootstrapped",
            tablet_id=self.tablet_id,
            rowsets=len(self._rowsets),
            replayed_ops=replayed,
        )
        return replayed
