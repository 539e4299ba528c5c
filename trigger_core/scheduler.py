"""
Ticker: drives the evaluation pass on a fixed cadence.

One background thread calls the pass every ``interval_seconds``. Passes never
overlap: tick() holds a non-blocking lock, so a tick requested while another is
still running is skipped. Tests call tick() directly instead of waiting on the clock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0


class Ticker:
    """
    Cancellable periodic timer. start() and stop() are idempotent; stop() lets an
    in-flight pass finish. Errors raised by the callback are logged, never fatal.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        *,
        name: str = "trigger-ticker",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self._tick_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    @property
    def ticks(self) -> int:
        """Number of passes that ran to completion (including ones that raised)."""
        return self._ticks

    def start(self) -> None:
        """Start firing ticks. No-op if already running."""
        with self._state_lock:
            if self.running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(target=self._run, args=(self._stop_event,), name=self.name, daemon=True)
            self._thread.start()
        logger.info("%s started (interval=%.2fs)", self.name, self.interval_seconds)

    def stop(self, timeout: float | None = None) -> None:
        """Stop future ticks. Waits up to ``timeout`` for an in-flight pass to end."""
        with self._state_lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()
            self._thread = None
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("%s stopped", self.name)

    def tick(self) -> bool:
        """
        Run one pass now, synchronously. Returns False if a pass was already in
        progress (skipped), True otherwise.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("%s: previous pass still running; skipping tick", self.name)
            return False
        try:
            self._callback()
        except Exception:  # noqa: BLE001
            logger.exception("%s: pass failed; retrying on next tick", self.name)
        finally:
            self._ticks += 1
            self._tick_lock.release()
        return True

    def _run(self, stop_event: threading.Event) -> None:
        # First tick fires one interval after start, like setInterval.
        while not stop_event.wait(self.interval_seconds):
            self.tick()
