"""Periodic background saving of a lineup session."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone

from .coordinator import SaveCoordinator
from .errors import SaveError

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_INTERVAL = 30.0


class AutosaveTimer:
    """Saves a coordinator's working set as a draft on a fixed interval.

    A tick does nothing when a save is already running, when nothing has
    changed, or when the issue already exists on the backend and
    ``after_create`` is off. Failures are reported through ``on_notice`` and
    the timer keeps ticking.

    Attributes:
        coordinator: The session to save
        interval: Seconds between ticks
        after_create: Keep autosaving once the issue exists on the backend
        last_autosave_at: Time of the last successful autosave (UTC)
        last_error: Message of the last failed autosave
    """

    def __init__(
        self,
        coordinator: SaveCoordinator,
        interval: float = DEFAULT_AUTOSAVE_INTERVAL,
        after_create: bool = False,
        on_notice: Callable[[str], None] | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.coordinator = coordinator
        self.interval = interval
        self.after_create = after_create
        self.on_notice = on_notice
        self.last_autosave_at: datetime | None = None
        self.last_error: str | None = None
        self._timer: threading.Timer | None = None
        self._stopped = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._stopped.is_set()

    def start(self) -> None:
        if self.is_running:
            return
        self._stopped.clear()
        self._schedule()
        logger.info(f"Autosave every {self.interval:g}s")

    def cancel(self) -> None:
        self._stopped.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        if self._stopped.is_set():
            return
        try:
            self.fire()
        finally:
            if not self._stopped.is_set():
                self._schedule()

    def fire(self) -> bool:
        """Run one autosave tick.

        Returns:
            True if a save was made
        """
        coordinator = self.coordinator
        if coordinator.is_saving:
            logger.debug("Autosave skipped: save in progress")
            return False
        if coordinator.issue.is_created and not self.after_create:
            return False
        if not coordinator.is_dirty:
            return False

        try:
            coordinator.save(publish=False)
        except SaveError as e:
            if e.step == "start":
                # A manual save started after the is_saving check
                logger.debug("Autosave skipped: save in progress")
                return False
            self.last_error = e.message
            logger.warning(f"Autosave failed: {e.message}")
            if self.on_notice is not None:
                self.on_notice(f"Autosave failed: {e.message}")
            return False

        self.last_autosave_at = datetime.now(timezone.utc)
        self.last_error = None
        logger.debug(f"Autosaved issue {coordinator.issue.id}")
        return True
