"""
Recurring background timers.

A RepeatingTimer is single-use: once stopped it cannot be restarted. Owners
replace a timer by stopping the old instance and creating a new one.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "timer"):
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        self.interval = interval
        self.name = name
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Timer {self.name} was already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the timer. No tick starts after this returns.

        Safe to call more than once and from inside the timer's own callback.
        When called from another thread, waits for an in-progress tick.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._callback()
            except (OSError, ValueError, TypeError, RuntimeError, KeyError, AttributeError) as exc:
                logger.error(
                    "Timer %s tick failed: %s",
                    self.name,
                    exc,
                    extra={"event": "timer.tick_error", "timer": self.name},
                    exc_info=True,
                )
