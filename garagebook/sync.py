"""Periodic refresh of the ledger snapshot."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Repeating timer that calls ``callback`` every ``interval`` seconds.

    Runs on one worker thread. ``stop`` wakes the worker and joins it, so no
    callback runs after ``stop`` returns. Errors raised by the callback are
    logged and the next tick runs as usual.
    """

    def __init__(self, callback: Callable[[], object], interval: float, *, name: str = "ledger-refresh") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._name = name
        self.ticks = 0

    def start(self) -> "RefreshScheduler":
        if self._stopped.is_set():
            raise RuntimeError("scheduler cannot be restarted after stop()")
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def __enter__(self) -> "RefreshScheduler":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self) -> None:
        # wait() returns True once stop() has been called.
        while not self._stopped.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Scheduled refresh failed")
            self.ticks += 1
