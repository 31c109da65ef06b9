# src/tabletfuzz/engine/maintenance.py
"""Threshold-driven background maintenance for reference tablets.

Runs synchronously after each write batch when enabled through
``ClusterSettings.maintenance_manager_enabled``. Fuzz runs normally leave it
off so the only flushes are the ones in the test case; turning it on checks
that unscheduled maintenance is just as invisible to readers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tabletfuzz.core.logging import get_logger

if TYPE_CHECKING:
    from tabletfuzz.core.config import ClusterSettings
    from tabletfuzz.engine.tablet import Tablet

logger = get_logger(__name__)


class MaintenanceManager:
    """Flush MemRowSets and DeltaMemStores once they pass a size threshold."""

    def __init__(self, settings: ClusterSettings) -> None:
        self._mrs_flush_threshold = settings.mrs_flush_threshold
        self._dms_flush_threshold = settings.dms_flush_threshold
        self.ops_run = 0

    def run_pending(self, tablet: Tablet) -> None:
        """Run every maintenance op whose threshold is met, once each."""
        if len(tablet.mrs) >= self._mrs_flush_threshold:
            logger.debug("maintenance op scheduled", op="flush_mrs", tablet_id=tablet.tablet_id)
            tablet.flush()
            self.ops_run += 1
        if tablet.biggest_dms_size() >= self._dms_flush_threshold:
            logger.debug("maintenance op scheduled", op="flush_dms", tablet_id=tablet.tablet_id)
            tablet.flush_biggest_dms()
            self.ops_run += 1
