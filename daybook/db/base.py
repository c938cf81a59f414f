"""Snapshot store interface for Daybook."""

from abc import ABC, abstractmethod

from daybook.models import Snapshot


class SnapshotStore(ABC):
    """Abstract base class for persistence collaborators.

    A store loads and saves a user's whole snapshot. There is no
    partial-update variant: every save replaces what was stored.
    """

    @abstractmethod
    def load(self, user_id: int) -> Snapshot:
        """Load everything stored for a user.

        Day records come back grouped from the stored trades with their
        derived fields unset; recalibration is the caller's job.

        Args:
            user_id: User identifier.

        Returns:
            The stored snapshot (empty if nothing is stored).

        Raises:
            PersistenceError: If the store cannot be read.
        """
        pass

    @abstractmethod
    def save(self, user_id: int, snapshot: Snapshot) -> None:
        """Replace everything stored for a user.

        Args:
            user_id: User identifier.
            snapshot: Full snapshot to persist.

        Raises:
            PersistenceError: If the write fails. Nothing is changed then.
        """
        pass
