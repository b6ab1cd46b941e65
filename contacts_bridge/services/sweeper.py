# contacts_bridge/services/sweeper.py

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CacheSweeper:
    """Periodic background worker that calls a sweep function every interval until stopped."""

    def __init__(self, sweep: Callable[[], object], interval_ms: int, stop_timeout_seconds: float = 5.0) -> None:
        # sweep: the cleanup callable (ContactCache.cleanup)
        self._sweep = sweep
        self.interval_ms = interval_ms
        self._stop_timeout = stop_timeout_seconds
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the background worker thread."""
        with self._lock:
            if self.running:
                return  # Already started
            self._stop = threading.Event()
            logger.info("Starting cache sweeper (interval=%s ms)...", self.interval_ms)
            self._thread = threading.Thread(
                target=self._run, args=(self._stop,), name="contact-cache-sweeper", daemon=True
            )
            self._thread.start()

    def stop(self) -> None:
        """Signal the worker to stop and wait for it to finish."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            logger.info("Stopping cache sweeper...")
            self._stop.set()
            self._thread = None
        if thread is threading.current_thread():
            # Stopped from inside a sweep; the loop exits on its own.
            return
        thread.join(timeout=self._stop_timeout)
        if thread.is_alive():
            logger.warning("Cache sweeper did not stop within %s sec; leaving daemon thread behind.", self._stop_timeout)
        else:
            logger.info("Cache sweeper stopped.")

    def restart(self, interval_ms: Optional[int] = None) -> None:
        """Clear any armed worker before starting a new one so two sweeps never overlap."""
        self.stop()
        if interval_ms is not None:
            self.interval_ms = interval_ms
        self.start()

    def _run(self, stop: threading.Event) -> None:
        """Main loop: sweep periodically until stop is requested."""
        logger.debug("Cache sweeper loop started.")
        try:
            while not stop.wait(timeout=self.interval_ms / 1000):
                try:
                    removed = self._sweep()
                    logger.debug("Cache sweep finished. Removed entries: %s", removed)
                except Exception:
                    logger.exception("Cache sweep failed with an exception.")
        finally:
            logger.debug("Cache sweeper loop exiting.")
