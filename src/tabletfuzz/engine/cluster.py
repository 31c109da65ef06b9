# src/tabletfuzz/engine/cluster.py
"""In-process mini cluster: one tablet server over one durable store.

Usage:
    with MiniCluster(ClusterSettings()) as cluster:
        cluster.create_table("table")
        session = cluster.new_row_client("table")
        peer = cluster.lookup_tablet()

Satisfies ``tabletfuzz.contracts.engine.ClusterBootstrap``. Everything the
tablet server needs (including whether the maintenance manager runs) comes
from the ClusterSettings passed in here.
"""

from __future__ import annotations

from types import TracebackType
from typing import Self

from tabletfuzz.contracts.errors import EngineError, TabletServerNotRunningError
from tabletfuzz.core.config import ClusterSettings
from tabletfuzz.core.logging import get_logger
from tabletfuzz.engine.client import Session
from tabletfuzz.engine.schema import fuzz_schema
from tabletfuzz.engine.server import TabletPeer, TabletServer
from tabletfuzz.engine.store import TabletStore

logger = get_logger(__name__)


class MiniCluster:
    """Single-server cluster used as the fuzz target."""

    def __init__(self, settings: ClusterSettings | None = None) -> None:
        self._settings = settings if settings is not None else ClusterSettings()
        self._store: TabletStore | None = None
        self._tablet_server: TabletServer | None = None

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    @property
    def settings(self) -> ClusterSettings:
        return self._settings

    @property
    def tablet_server(self) -> TabletServer | None:
        return self._tablet_server

    def start(self) -> None:
        """Open the store and start the tablet server.

        Opening the store wipes whatever an earlier cluster left in it, so
        every cluster starts with no tables. Durable state only has to
        survive tablet server restarts within this cluster.
        """
        if self._store is None:
            self._store = TabletStore(self._settings.store_url)
            self._store.reset()
        if self._tablet_server is None:
            self._tablet_server = TabletServer(self._store, self._settings)
        self._tablet_server.start()
        logger.debug(
            "cluster started",
            store_url=self._settings.store_url,
            maintenance_manager_enabled=self._settings.maintenance_manager_enabled,
        )

    def shutdown(self) -> None:
        """Stop the tablet server and close the store."""
        if self._tablet_server is not None:
            self._tablet_server.shutdown()
            self._tablet_server = None
        if self._store is not None:
            self._store.close()
            self._store = None

    def restart_tablet_server(self) -> None:
        """Restart the tablet server, or start it if it is not running.

        The store stays open, so durable rowsets and the write-ahead log
        survive; tablet peers looked up earlier are stale afterwards.
        """
        server = self._require_server()
        if server.is_running:
            server.shutdown()
        server.start()
        logger.debug("tablet server restarted")

    def stop_tablet_server(self) -> None:
        """Stop the tablet server but keep the store (simulates a crash)."""
        self._require_server().shutdown()

    def create_table(self, table_name: str) -> None:
        self._require_server().create_tablet(table_name)

    def lookup_tablet(self) -> TabletPeer:
        """The single tablet peer hosted by the server.

        Raises:
            EngineError: If the server hosts no tablet or more than one.
        """
        peers = self._require_server().tablet_peers()
        if len(peers) != 1:
            raise EngineError(f"expected exactly one tablet peer, found {len(peers)}")
        return peers[0]

    def new_row_client(self, table_name: str) -> Session:
        # Fail fast on unknown tables instead of at first flush
        self._require_server().tablet_for_table(table_name)
        return Session(self, table_name, fuzz_schema())

    def _require_server(self) -> TabletServer:
        if self._tablet_server is None:
            raise TabletServerNotRunningError("cluster has not been started")
        return self._tablet_server
