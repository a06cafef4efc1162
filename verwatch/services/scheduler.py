from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs ``run_cycle`` every ``interval_minutes`` on a daemon thread.

    The loop waits on a per-run cancel event, so the first tick comes one full
    interval after ``start`` and ``stop`` wakes the loop immediately. A cycle
    that is already running is allowed to finish.
    """

    def __init__(self, run_cycle: Callable[[], object]):
        self._run_cycle = run_cycle
        self._lock = threading.Lock()
        self._cancel: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._interval_minutes: float | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._cancel is not None

    @property
    def interval_minutes(self) -> float | None:
        return self._interval_minutes

    def start(self, interval_minutes: float) -> None:
        with self._lock:
            self._stop_locked()
            self._start_locked(interval_minutes)

    def stop(self) -> None:
        with self._lock:
            self._stop_locked()

    def restart(self, interval_minutes: float) -> None:
        with self._lock:
            self._stop_locked()
            self._start_locked(interval_minutes)

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _start_locked(self, interval_minutes: float) -> None:
        if interval_minutes <= 0:
            logger.info("Scheduler disabled (interval %s)", interval_minutes)
            return

        cancel = threading.Event()
        thread = threading.Thread(
            target=self._loop,
            args=(interval_minutes * 60.0, cancel),
            name="verwatch-scheduler",
            daemon=True,
        )
        self._cancel = cancel
        self._thread = thread
        self._interval_minutes = interval_minutes
        thread.start()
        logger.info("Scheduler started with interval: %s minutes", interval_minutes)

    def _stop_locked(self) -> None:
        if self._cancel is None:
            return
        self._cancel.set()
        self._cancel = None
        self._interval_minutes = None
        logger.info("Scheduler stopped")

    def _loop(self, interval_seconds: float, cancel: threading.Event) -> None:
        while not cancel.wait(interval_seconds):
            logger.info("Running scheduled version check")
            try:
                self._run_cycle()
            except Exception:  # noqa: BLE001
                logger.exception("Scheduled version check failed")
        logger.info("Scheduler received cancel signal")
