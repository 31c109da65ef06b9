# src/tabletfuzz/engine/store.py
"""Durable storage for reference tablets: write-ahead log and DiskRowSets.

Uses SQLAlchemy Core (not ORM) with SQLite. The cluster owns one
TabletStore for its whole life, so even the default in-memory database
survives tablet server restarts; only the server's in-memory stores
(MemRowSet, DeltaMemStores) are lost and rebuilt by WAL replay.

Tables:
    tablets      one row per tablet (table name, rowset id allocator)
    rowsets      durable parts of each DiskRowSet, JSON encoded
    wal_entries  every committed row operation with the store it targeted
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import (
    Column,
    Connection,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    create_engine,
    delete,
    event,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from tabletfuzz.contracts.enums import MutationType, StoreKind
from tabletfuzz.contracts.errors import StorageError
from tabletfuzz.engine.rowsets import DeltaEntry, DiskRowSet

metadata = MetaData()

tablets_table = Table(
    "tablets",
    metadata,
    Column("tablet_id", String(64), primary_key=True),
    Column("table_name", String(256), nullable=False, unique=True),
    Column("next_rowset_id", Integer, nullable=False),
)

rowsets_table = Table(
    "rowsets",
    metadata,
    Column("tablet_id", String(64), nullable=False),
    Column("rowset_id", Integer, nullable=False),
    Column("base_json", Text, nullable=False),
    Column("delta_files_json", Text, nullable=False),
    Column("durable_op_ids_json", Text, nullable=False),
    PrimaryKeyConstraint("tablet_id", "rowset_id"),
)

wal_entries_table = Table(
    "wal_entries",
    metadata,
    Column("tablet_id", String(64), nullable=False),
    Column("op_id", Integer, nullable=False),
    Column("batch_id", Integer, nullable=False),
    Column("op_type", String(16), nullable=False),
    Column("row_key", Integer, nullable=False),
    Column("row_value", Integer),
    Column("target_kind", String(8), nullable=False),
    Column("target_id", Integer, nullable=False),
    PrimaryKeyConstraint("tablet_id", "op_id"),
)


@dataclass(frozen=True, slots=True)
class WalEntry:
    """A committed row operation and the store it was applied to."""

    op_id: int
    batch_id: int
    op_type: MutationType
    key: int
    value: int | None
    target_kind: StoreKind
    target_id: int


@dataclass(frozen=True, slots=True)
class TabletRecord:
    """Persisted identity of a tablet."""

    tablet_id: str
    table_name: str
    next_rowset_id: int


class TabletStore:
    """Durable state shared by all tablets of a cluster."""

    def __init__(self, connection_string: str = "sqlite://") -> None:
        """Open (and create if needed) the store.

        Args:
            connection_string: SQLAlchemy URL, e.g. "sqlite://" (in-memory)
                or "sqlite:///./fuzz/tablets.db"

        Raises:
            StorageError: If the database cannot be opened or its tables created.
        """
        self.connection_string = connection_string
        self._engine: Engine = self._create_engine(connection_string)
        with _translate_errors():
            metadata.create_all(self._engine)

    @staticmethod
    def _create_engine(connection_string: str) -> Engine:
        if connection_string in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            engine = create_engine(
                connection_string,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(connection_string, echo=False)

        if connection_string.startswith("sqlite"):

            @event.listens_for(engine, "connect")
            def set_sqlite_pragma(dbapi_connection: object, connection_record: object) -> None:
                cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA busy_timeout=5000")
                cursor.close()

        return engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        self._engine.dispose()

    def reset(self) -> None:
        """Drop every tablet, rowset and WAL entry."""
        with _translate_errors():
            metadata.drop_all(self._engine)
            metadata.create_all(self._engine)

    @contextmanager
    def _transaction(self) -> Iterator[Connection]:
        with _translate_errors(), self._engine.begin() as conn:
            yield conn

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        with _translate_errors(), self._engine.connect() as conn:
            yield conn

    # -------------------------------------------------------------------------
    # Tablets
    # -------------------------------------------------------------------------

    def create_tablet(self, tablet_id: str, table_name: str) -> None:
        with self._transaction() as conn:
            conn.execute(insert(tablets_table).values(tablet_id=tablet_id, table_name=table_name, next_rowset_id=0))

    def load_tablets(self) -> list[TabletRecord]:
        with self._connection() as conn:
            rows = conn.execute(select(tablets_table).order_by(tablets_table.c.table_name)).all()
        return [TabletRecord(row.tablet_id, row.table_name, row.next_rowset_id) for row in rows]

    def allocate_rowset_id(self, tablet_id: str) -> int:
        """Reserve the next rowset id. Ids are never reused, even after compaction."""
        with self._transaction() as conn:
            current = conn.execute(
                select(tablets_table.c.next_rowset_id).where(tablets_table.c.tablet_id == tablet_id)
            ).scalar_one()
            conn.execute(
                update(tablets_table).where(tablets_table.c.tablet_id == tablet_id).values(next_rowset_id=current + 1)
            )
        return int(current)

    # -------------------------------------------------------------------------
    # Rowsets
    # -------------------------------------------------------------------------

    def replace_rowsets(
        self,
        tablet_id: str,
        *,
        removed: Iterable[int] = (),
        written: Iterable[DiskRowSet] = (),
    ) -> None:
        """Atomically drop ``removed`` rowsets and (re)write ``written`` ones."""
        written = list(written)
        with self._transaction() as conn:
            stale = {*removed, *(rowset.rowset_id for rowset in written)}
            if stale:
                conn.execute(
                    delete(rowsets_table).where(
                        rowsets_table.c.tablet_id == tablet_id,
                        rowsets_table.c.rowset_id.in_(stale),
                    )
                )
            for rowset in written:
                conn.execute(insert(rowsets_table).values(tablet_id=tablet_id, **_encode_rowset(rowset)))

    def load_rowsets(self, tablet_id: str) -> list[DiskRowSet]:
        with self._connection() as conn:
            rows = conn.execute(
                select(rowsets_table)
                .where(rowsets_table.c.tablet_id == tablet_id)
                .order_by(rowsets_table.c.rowset_id)
            ).all()
        return [_decode_rowset(row._mapping) for row in rows]

    # -------------------------------------------------------------------------
    # Write-ahead log
    # -------------------------------------------------------------------------

    def append_wal(self, tablet_id: str, entries: Sequence[WalEntry]) -> None:
        """Append one committed batch to the log in a single transaction."""
        if not entries:
            return
        with self._transaction() as conn:
            _insert_wal_entries(conn, tablet_id, entries)

    def read_wal(self, tablet_id: str) -> list[WalEntry]:
        """All logged entries of a tablet in op id order."""
        with self._connection() as conn:
            rows = conn.execute(
                select(wal_entries_table)
                .where(wal_entries_table.c.tablet_id == tablet_id)
                .order_by(wal_entries_table.c.op_id)
            ).all()
        return [
            WalEntry(
                op_id=row.op_id,
                batch_id=row.batch_id,
                op_type=MutationType(row.op_type),
                key=row.row_key,
                value=row.row_value,
                target_kind=StoreKind(row.target_kind),
                target_id=row.target_id,
            )
            for row in rows
        ]


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StorageError(f"{type(e).__name__}: {e}") from e


def _insert_wal_entries(conn: Connection, tablet_id: str, entries: Sequence[WalEntry]) -> None:
    conn.execute(
        insert(wal_entries_table),
        [
            {
                "tablet_id": tablet_id,
                "op_id": entry.op_id,
                "batch_id": entry.batch_id,
                "op_type": entry.op_type.value,
                "row_key": entry.key,
                "row_value": entry.value,
                "target_kind": entry.target_kind.value,
                "target_id": entry.target_id,
            }
            for entry in entries
        ],
    )


def _encode_rowset(rowset: DiskRowSet) -> dict[str, object]:
    return {
        "rowset_id": rowset.rowset_id,
        "base_json": json.dumps(sorted(rowset.base.items())),
        "delta_files_json": json.dumps(
            [
                [[entry.key, entry.op_id, entry.mutation.value, entry.value] for entry in delta_file]
                for delta_file in rowset.delta_files
            ]
        ),
        "durable_op_ids_json": json.dumps(sorted(rowset.durable_op_ids)),
    }


def _decode_rowset(mapping: RowMapping) -> DiskRowSet:
    base = {int(key): value for key, value in json.loads(mapping["base_json"])}
    delta_files = [
        tuple(DeltaEntry(key, op_id, MutationType(mutation), value) for key, op_id, mutation, value in delta_file)
        for delta_file in json.loads(mapping["delta_files_json"])
    ]
    return DiskRowSet(
        rowset_id=mapping["rowset_id"],
        base=base,
        delta_files=delta_files,
        durable_op_ids=set(json.loads(mapping["durable_op_ids_json"])),
    )
