"""Persistence for Daybook."""

from daybook.db.base import SnapshotStore
from daybook.db.store import DataStore

__all__ = ["DataStore", "SnapshotStore"]
