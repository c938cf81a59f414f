"""Snapshot synchronization for Daybook."""

from daybook.sync.coordinator import SaveStatus, SyncCoordinator

__all__ = ["SaveStatus", "SyncCoordinator"]
