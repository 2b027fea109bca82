# common/loader.py
from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class BackgroundLoader:
    """
    Runs a blocking call (roster fetch, model request) off the Tk thread and
    hands the outcome back on it. The owning widget polls drain() with after();
    callbacks only fire from drain(). A failure is logged and reported to
    on_failed, nothing else changes.
    """

    def __init__(self, fetch: Callable[[], Any],
                 on_loaded: Callable[[Any], Any],
                 on_failed: Optional[Callable[[BaseException], Any]] = None,
                 label: str = "students"):
        self.fetch = fetch
        self.on_loaded = on_loaded
        self.on_failed = on_failed
        self.label = label
        self._results: "queue.Queue[tuple]" = queue.Queue()
        self._started = 0
        self._delivered = 0
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._started > self._delivered

    def start(self, threaded: bool = True) -> int:
        with self._lock:
            self._started += 1
            generation = self._started
        if threaded:
            t = threading.Thread(target=self._run, args=(generation,), daemon=True); t.start()
        else:
            self._run(generation)
        return generation

    def _run(self, generation: int) -> None:
        try:
            result = self.fetch()
        except Exception as e:
            logger.warning("Error fetching %s: %s", self.label, e)
            self._results.put((generation, False, e))
            return
        self._results.put((generation, True, result))

    def drain(self) -> int:
        """Deliver queued outcomes in start order; returns how many callbacks fired."""
        fired = 0
        while True:
            try:
                generation, ok, value = self._results.get_nowait()
            except queue.Empty:
                return fired
            if generation < self._delivered:
                # a newer call already delivered
                logger.info("Dropping stale %s result #%d", self.label, generation)
                continue
            self._delivered = generation
            if ok:
                self.on_loaded(value)
            elif self.on_failed is not None:
                self.on_failed(value)
            fired += 1

    def poll(self, widget, interval_ms: int = 100) -> None:
        """Keep draining from the Tk event loop for as long as widget exists."""
        self.drain()
        if widget.winfo_exists():
            widget.after(interval_ms, self.poll, widget, interval_ms)
