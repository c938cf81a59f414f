"""Debounced snapshot persistence.

Bursts of local mutations collapse into one write of the full snapshot.
The snapshot is pulled when the timer fires, so a save always carries
every mutation made during the quiet window.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from daybook.models import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 2.0
DEFAULT_SAVED_DISPLAY_SECONDS = 2.0


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


TimerFactory = Callable[[float, Callable[[], None]], Any]


class SyncCoordinator:
    """Trailing-edge debounce between the in-memory ledger and a store."""

    def __init__(
        self,
        pull: Callable[[], Snapshot],
        push: Callable[[Snapshot], None],
        delay: float = DEFAULT_DELAY_SECONDS,
        saved_display: float = DEFAULT_SAVED_DISPLAY_SECONDS,
        timer_factory: TimerFactory = threading.Timer,
        on_status: Optional[Callable[[SaveStatus], None]] = None,
    ):
        """Initialize the coordinator.

        Args:
            pull: Returns the latest snapshot at fire time.
            push: Writes a snapshot; raises on failure.
            delay: Quiet window in seconds.
            saved_display: How long SAVED is shown before returning to IDLE.
            timer_factory: Builds a startable, cancellable timer.
            on_status: Called on every status transition.
        """
        self._pull = pull
        self._push = push
        self._delay = delay
        self._saved_display = saved_display
        self._timer_factory = timer_factory
        self._on_status = on_status

        self._lock = threading.Lock()
        # Serializes saves so flush never overlaps a timer-driven save
        self._save_lock = threading.Lock()
        self._pending = None
        # Bumped per request; a timer only fires for the request that armed it
        self._generation = 0
        self._reset_timer = None
        self._status = SaveStatus.IDLE
        self._last_error: Optional[Exception] = None

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    @property
    def pending(self) -> bool:
        """True while a save is scheduled but has not fired."""
        return self._pending is not None

    def request_save(self) -> None:
        """Schedule a save, restarting the quiet window."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            if self._status == SaveStatus.ERROR:
                self._set_status(SaveStatus.IDLE)
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self._delay, lambda: self._fire(generation))
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._pending = timer
            timer.start()

    def flush(self) -> None:
        """Run a scheduled save now instead of waiting for the timer.

        A save that is already running is waited for.
        """
        with self._lock:
            timer = self._pending
            self._pending = None
        if timer is None:
            with self._save_lock:
                return
        timer.cancel()
        self._save()

    def cancel(self) -> None:
        """Drop a scheduled save without running it."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            if self._reset_timer is not None:
                self._reset_timer.cancel()
                self._reset_timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            # Already flushed, cancelled or superseded
            if self._pending is None or generation != self._generation:
                return
            self._pending = None
        self._save()

    def _save(self) -> None:
        with self._save_lock:
            self._run_save()

    def _run_save(self) -> None:
        with self._lock:
            if self._reset_timer is not None:
                self._reset_timer.cancel()
                self._reset_timer = None
            self._set_status(SaveStatus.SAVING)

        try:
            snapshot = self._pull()
            self._push(snapshot)
        except Exception as e:
            logger.error("Save failed: %s", e)
            with self._lock:
                self._last_error = e
                self._set_status(SaveStatus.ERROR)
            return

        logger.info(
            "Saved %d record(s) across %d brokerage(s)",
            len(snapshot.records), len(snapshot.brokerages),
        )
        with self._lock:
            self._last_error = None
            self._set_status(SaveStatus.SAVED)
            timer = self._timer_factory(self._saved_display, self._clear_saved)
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._reset_timer = timer
            timer.start()

    def _clear_saved(self) -> None:
        with self._lock:
            self._reset_timer = None
            if self._status == SaveStatus.SAVED:
                self._set_status(SaveStatus.IDLE)

    def _set_status(self, status: SaveStatus) -> None:
        # Callers hold self._lock
        if status == self._status:
            return
        logger.info("Save status %s -> %s", self._status.value, status.value)
        self._status = status
        if self._on_status is not None:
            self._on_status(status)
