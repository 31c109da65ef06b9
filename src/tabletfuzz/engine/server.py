# src/tabletfuzz/engine/server.py
"""Tablet server hosting reference tablets, and the peer handle used for maintenance."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

from tabletfuzz.contracts.enums import CompactionKind
from tabletfuzz.contracts.errors import TableAlreadyExistsError, TableNotFoundError, TabletServerNotRunningError
from tabletfuzz.core.logging import get_logger
from tabletfuzz.engine.maintenance import MaintenanceManager
from tabletfuzz.engine.schema import fuzz_schema
from tabletfuzz.engine.tablet import RowOperation, Tablet

if TYPE_CHECKING:
    from tabletfuzz.core.config import ClusterSettings
    from tabletfuzz.engine.store import TabletStore, WalEntry

logger = get_logger(__name__)


class TabletPeer:
    """Administrative handle on one hosted tablet.

    Satisfies ``tabletfuzz.contracts.engine.TabletMaintenance``. A peer is
    bound to one incarnation of the tablet; look it up again after the
    tablet server restarts.
    """

    def __init__(self, tablet: Tablet) -> None:
        self._tablet = tablet

    @property
    def tablet(self) -> Tablet:
        return self._tablet

    @property
    def tablet_id(self) -> str:
        return self._tablet.tablet_id

    def flush_fast_store(self) -> None:
        self._tablet.flush()

    def flush_largest_delta_store(self) -> None:
        self._tablet.flush_biggest_dms()

    def compact_worst_deltas(self, kind: CompactionKind) -> None:
        self._tablet.compact_worst_deltas(kind)

    def compact_all(self) -> None:
        self._tablet.compact()


class TabletServer:
    """Hosts tablets over a shared durable store.

    Shutting down drops every in-memory tablet; starting again bootstraps
    each persisted tablet from its rowsets and write-ahead log.
    """

    def __init__(self, store: TabletStore, settings: ClusterSettings) -> None:
        self._store = store
        self._settings = settings
        self._tablets: dict[str, Tablet] = {}
        self._running = False
        self._maintenance: MaintenanceManager | None = (
            MaintenanceManager(settings) if settings.maintenance_manager_enabled else None
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def maintenance_manager(self) -> MaintenanceManager | None:
        return self._maintenance

    def start(self) -> None:
        """Bootstrap every persisted tablet and begin serving."""
        if self._running:
            return
        self._tablets = {}
        for record in self._store.load_tablets():
            tablet = Tablet(record.tablet_id, record.table_name, fuzz_schema(), self._store)
            tablet.bootstrap()
            self._tablets[record.table_name] = tablet
        self._running = True
        logger.debug("tablet server started", tablets=len(self._tablets))

    def shutdown(self) -> None:
        """Stop serving and drop all in-memory state."""
        self._tablets = {}
        self._running = False
        logger.debug("tablet server stopped")

    def _check_running(self) -> None:
        if not self._running:
            raise TabletServerNotRunningError("tablet server is not running")

    def create_tablet(self, table_name: str) -> Tablet:
        self._check_running()
        if table_name in self._tablets:
            raise TableAlreadyExistsError(table_name)
        tablet_id = uuid.uuid4().hex
        self._store.create_tablet(tablet_id, table_name)
        tablet = Tablet(tablet_id, table_name, fuzz_schema(), self._store)
        self._tablets[table_name] = tablet
        logger.debug("tablet created", tablet_id=tablet_id, table_name=table_name)
        return tablet

    def tablet_for_table(self, table_name: str) -> Tablet:
        self._check_running()
        try:
            return self._tablets[table_name]
        except KeyError:
            raise TableNotFoundError(table_name) from None

    def tablet_peers(self) -> list[TabletPeer]:
        self._check_running()
        return [TabletPeer(self._tablets[name]) for name in sorted(self._tablets)]

    def write(self, table_name: str, operations: Sequence[RowOperation]) -> list[WalEntry]:
        """Apply one client batch, then run background maintenance if enabled."""
        tablet = self.tablet_for_table(table_name)
        entries = tablet.apply_batch(operations)
        if self._maintenance is not None:
            self._maintenance.run_pending(tablet)
        return entries

    def lookup(self, table_name: str, key: int) -> str:
        return self.tablet_for_table(table_name).lookup(key)
