# src/tabletfuzz/engine/client.py
"""Client session for the reference engine, in manual-flush mode.

Mutations are buffered locally and only reach the tablet server when the
session is flushed. The server applies the whole buffer as one atomic
batch, so per-row failures (duplicate insert, missing row) surface at flush
time and leave the tablet unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tabletfuzz.contracts.enums import MutationType
from tabletfuzz.contracts.errors import TabletServerNotRunningError
from tabletfuzz.engine.schema import TableSchema
from tabletfuzz.engine.tablet import RowOperation

if TYPE_CHECKING:
    from tabletfuzz.engine.cluster import MiniCluster
    from tabletfuzz.engine.server import TabletServer


class Session:
    """Manual-flush session bound to one table.

    Satisfies ``tabletfuzz.contracts.engine.RowClient``. The session resolves
    the tablet server on every call, so it keeps working across tablet
    server restarts.
    """

    def __init__(self, cluster: MiniCluster, table_name: str, schema: TableSchema) -> None:
        self._cluster = cluster
        self._table_name = table_name
        self._schema = schema
        self._buffer: list[RowOperation] = []

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def pending_count(self) -> int:
        return len(self._buffer)

    def create_row(self, key: int, value: int | None) -> str:
        self._buffer.append(RowOperation(MutationType.INSERT, key, value))
        return self._schema.render_partial_row(key, value)

    def update_row(self, key: int, value: int | None) -> str:
        self._buffer.append(RowOperation(MutationType.UPDATE, key, value))
        return self._schema.render_partial_row(key, value)

    def delete_row(self, key: int) -> str:
        self._buffer.append(RowOperation(MutationType.DELETE, key))
        return ""

    def commit_pending_mutations(self) -> None:
        """Send the buffered batch. The buffer is cleared even if the batch fails."""
        batch, self._buffer = self._buffer, []
        if not batch:
            return
        self._server().write(self._table_name, batch)

    def lookup_row(self, key: int) -> str:
        return self._server().lookup(self._table_name, key)

    def _server(self) -> TabletServer:
        server = self._cluster.tablet_server
        if server is None:
            raise TabletServerNotRunningError("cluster has not been started")
        return server
