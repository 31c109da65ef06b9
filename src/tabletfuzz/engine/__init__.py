# src/tabletfuzz/engine/__init__.py
"""Reference tablet engine: the collaborator fuzz runs execute against.

An in-process model of a columnar tablet (MemRowSet, DiskRowSets with REDO
delta stores, delta and full compactions) with a SQLAlchemy-backed
write-ahead log so tablet server restarts exercise recovery.

The fuzz harness only talks to it through the protocols in
``tabletfuzz.contracts.engine``.
"""

from tabletfuzz.engine.client import Session
from tabletfuzz.engine.cluster import MiniCluster
from tabletfuzz.engine.schema import EMPTY_ROW, TableSchema, fuzz_schema
from tabletfuzz.engine.server import TabletPeer, TabletServer
from tabletfuzz.engine.store import TabletStore
from tabletfuzz.engine.tablet import RowOperation, Tablet

__all__ = [
    "EMPTY_ROW",
    "MiniCluster",
    "RowOperation",
    "Session",
    "TableSchema",
    "Tablet",
    "TabletPeer",
    "TabletServer",
    "TabletStore",
    "fuzz_schema",
]
