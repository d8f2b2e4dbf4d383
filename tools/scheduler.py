"""Cancellable recurring background task."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from stylist_app.logging_config import log_event

LOGGER = logging.getLogger(__name__)


class RecurringTask:
    """Run ``callback`` every ``interval_seconds`` on a daemon thread.

    Runs never overlap: a tick that arrives while the previous run is still in
    progress is skipped. Once :meth:`stop` returns no further run starts.
    """

    def __init__(self, interval_seconds: float, callback: Callable[[], object], name: str = "recurring-task") -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stopped = False
        self.runs = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopped = False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        log_event(LOGGER, logging.INFO, "recurring_task_started", task=self.name, interval_seconds=self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stopped = True
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        log_event(LOGGER, logging.INFO, "recurring_task_stopped", task=self.name)

    def run_now(self) -> bool:
        """Run the callback once on the calling thread.

        Returns ``False`` when the run was skipped because another run was in
        progress or the task has been stopped.
        """

        if self._stopped:
            return False
        if not self._run_lock.acquire(blocking=False):
            self.skipped += 1
            log_event(LOGGER, logging.DEBUG, "recurring_task_skipped", task=self.name)
            return False
        try:
            self.callback()
            self.runs += 1
        except Exception:
            log_event(LOGGER, logging.ERROR, "recurring_task_failed", task=self.name, exc_info=True)
        finally:
            self._run_lock.release()
        return True

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.run_now()


__all__ = ["RecurringTask"]
