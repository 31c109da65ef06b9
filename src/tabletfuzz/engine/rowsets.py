# src/tabletfuzz/engine/rowsets.py
"""In-tablet row stores: MemRowSet, DeltaMemStore and DiskRowSet.

Layout follows a classic columnar tablet:

- MemRowSet (MRS): rows inserted since the last flush. Updates and deletes
  of those rows are applied in place. A deleted row stays behind as a ghost
  and can be re-inserted.
- DiskRowSet (DRS): immutable base data written by an MRS flush or a
  compaction, plus REDO deltas layered on top. New deltas land in the
  rowset's DeltaMemStore (DMS) and are flushed into immutable delta files.

A key can appear in several rowsets at once (a ghost in one, live in
another) but may be live in at most one. Callers enforce that.

Every row operation carries an op id. Each DiskRowSet remembers the op ids
folded into its durable parts (base data and delta files) so a restarted
tablet knows which logged ops to replay.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tabletfuzz.contracts.enums import MutationType


@dataclass(frozen=True, slots=True)
class DeltaEntry:
    """One REDO mutation of a base row. Value is ignored for DELETE."""

    key: int
    op_id: int
    mutation: MutationType
    value: int | None = None


DeltaFile = tuple[DeltaEntry, ...]


@dataclass(slots=True)
class MemRowSetRow:
    """A row held in the MemRowSet."""

    key: int
    value: int | None
    op_ids: list[int]
    delete_op_id: int | None = None

    @property
    def is_live(self) -> bool:
        return self.delete_op_id is None


class MemRowSet:
    """Mutable in-memory store of recently inserted rows."""

    def __init__(self, mrs_id: int) -> None:
        self.mrs_id = mrs_id
        self._rows: dict[int, MemRowSetRow] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def is_empty(self) -> bool:
        return not self._rows

    def get_live(self, key: int) -> MemRowSetRow | None:
        row = self._rows.get(key)
        if row is not None and row.is_live:
            return row
        return None

    def insert(self, key: int, value: int | None, op_id: int) -> None:
        """Insert a row, reviving a ghost of the same key if there is one."""
        row = self._rows.get(key)
        if row is None:
            self._rows[key] = MemRowSetRow(key, value, [op_id])
            return
        if row.is_live:
            raise ValueError(f"MemRowSet {self.mrs_id} already holds live key {key}")
        row.value = value
        row.delete_op_id = None
        row.op_ids.append(op_id)

    def mutate(self, key: int, mutation: MutationType, value: int | None, op_id: int) -> None:
        """Apply an UPDATE or DELETE to a live row in place."""
        row = self.get_live(key)
        if row is None:
            raise ValueError(f"MemRowSet {self.mrs_id} has no live key {key}")
        row.op_ids.append(op_id)
        if mutation is MutationType.DELETE:
            row.delete_op_id = op_id
        else:
            row.value = value

    def rows(self) -> list[MemRowSetRow]:
        """Rows (live and ghosts) in key order."""
        return [self._rows[key] for key in sorted(self._rows)]


@dataclass(slots=True)
class DeltaMemStore:
    """In-memory REDO deltas for one DiskRowSet, in apply order."""

    entries: list[DeltaEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def append(self, entry: DeltaEntry) -> None:
        self.entries.append(entry)

    def op_ids(self) -> set[int]:
        return {entry.op_id for entry in self.entries}


@dataclass(slots=True)
class DiskRowSet:
    """Immutable base rows plus REDO delta files and a DeltaMemStore.

    Attributes:
        rowset_id: Tablet-unique id, never reused
        base: Base value of every row written into this rowset
        delta_files: Flushed REDO deltas, oldest first
        durable_op_ids: Op ids folded into base and delta files
        dms: Unflushed REDO deltas (lost on restart, rebuilt by replay)
    """

    rowset_id: int
    base: dict[int, int | None]
    delta_files: list[DeltaFile] = field(default_factory=list)
    durable_op_ids: set[int] = field(default_factory=set)
    dms: DeltaMemStore = field(default_factory=DeltaMemStore)

    def resolve(self, key: int) -> tuple[bool, int | None]:
        """Return (is_live, value) of ``key`` after applying every delta."""
        if key not in self.base:
            return False, None
        live = True
        value = self.base[key]
        for entry in self._deltas_for(key):
            if entry.mutation is MutationType.DELETE:
                live = False
            else:
                value = entry.value
        return live, value

    def is_live(self, key: int) -> bool:
        return self.resolve(key)[0]

    def keys(self) -> list[int]:
        return sorted(self.base)

    def _deltas_for(self, key: int) -> list[DeltaEntry]:
        deltas = [entry for delta_file in self.delta_files for entry in delta_file if entry.key == key]
        deltas.extend(entry for entry in self.dms.entries if entry.key == key)
        return deltas

    def flush_dms(self) -> int:
        """Move the DMS into a new delta file. Returns the number of entries flushed."""
        flushed = len(self.dms)
        if flushed == 0:
            return 0
        self.delta_files.append(tuple(self.dms.entries))
        self.durable_op_ids.update(self.dms.op_ids())
        self.dms = DeltaMemStore()
        return flushed

    def minor_compact(self) -> bool:
        """Merge all delta files into one. Needs at least two files."""
        if len(self.delta_files) < 2:
            return False
        merged: DeltaFile = tuple(entry for delta_file in self.delta_files for entry in delta_file)
        self.delta_files = [merged]
        return True

    def major_compact(self) -> bool:
        """Fold delta-file UPDATEs into base data; DELETEs stay as deltas.

        The DMS is not touched. Needs at least one delta file.
        """
        if not self.delta_files:
            return False
        base = dict(self.base)
        remaining: list[DeltaEntry] = []
        for delta_file in self.delta_files:
            for entry in delta_file:
                if entry.mutation is MutationType.DELETE:
                    remaining.append(entry)
                else:
                    base[entry.key] = entry.value
        self.base = base
        self.delta_files = [tuple(remaining)] if remaining else []
        return True
