"""Frame-side loop that follows the slideshow timeline.

A picture frame does not keep its own playlist.  It asks the backend what
is showing right now, displays it, and asks again when the returned
window ends.  :class:`SlideshowPoller` runs that loop on a background
thread.  It never busy-polls: the next request is scheduled for the
``next_poll`` hint of the last answer, bounded by the configured minimum
and maximum intervals so clock skew cannot stall or flood the backend.

When the backend reports that there is nothing to display the poller
falls back to a slow fixed interval and resumes as soon as media shows up
again.  Any other failure is logged and retried.  The implementation is
framework agnostic; tests inject simple callables.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .media import EmptyCatalogError, PlaybackWindow

__all__ = ["PollerConfig", "SlideshowPoller"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class PollerConfig:
    """Timing configuration for :class:`SlideshowPoller` (in seconds)."""

    min_interval: float = 0.5
    max_interval: float = 60.0
    empty_interval: float = 10.0
    retry_interval: float = 5.0
    shutdown_timeout: float = 10.0


class SlideshowPoller:
    """Keep a frame in sync with the backend's current window.

    Parameters
    ----------
    fetch_window:
        Callable returning the current :class:`PlaybackWindow`.  It may
        raise :class:`EmptyCatalogError` when nothing can be displayed.
    on_change:
        Callable invoked with the new window whenever the displayed item
        or its window changes, and with ``None`` once when the catalog
        becomes empty.
    config:
        Optional :class:`PollerConfig` to tweak timing behaviour.
    clock:
        Callable returning the current time; defaults to UTC now.
    logger:
        Optional :class:`logging.Logger` that should receive status
        updates.  When omitted a module level logger is used.
    """

    def __init__(
        self,
        fetch_window: Callable[[], PlaybackWindow],
        on_change: Callable[[Optional[PlaybackWindow]], None],
        *,
        config: Optional[PollerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fetch_window = fetch_window
        self._on_change = on_change
        self._config = config or PollerConfig()
        self._clock = clock or _utcnow
        self._logger = logger or logging.getLogger("slideshow.poller")
        self._thread: Optional[threading.Thread] = None
        self._current: Optional[PlaybackWindow] = None
        self._empty = False
        self._stop_event = threading.Event()
        self._ready_event = threading.Event()

    # ------------------------------------------------------------------
    @property
    def current(self) -> Optional[PlaybackWindow]:
        """The window most recently reported to ``on_change``."""

        return self._current

    # ------------------------------------------------------------------
    def start(
        self,
        *,
        block_until_ready: bool = False,
        timeout: Optional[float] = None,
    ) -> bool:
        """Start the background thread if it is not running yet.

        Parameters
        ----------
        block_until_ready:
            When ``True`` this call waits until the first window has been
            received.  The default is non-blocking so a frame without
            media can finish its own startup.
        timeout:
            Optional timeout in seconds for the blocking variant.  A
            timeout of ``None`` waits indefinitely.

        Returns
        -------
        bool
            ``True`` when the thread was launched (and a window arrived if
            ``block_until_ready`` was requested), otherwise ``False``.
        """

        if self._thread and self._thread.is_alive():
            self._logger.debug("Slideshow poller already running")
            if block_until_ready:
                return self._wait_until_ready(timeout)
            return True
        self._stop_event.clear()
        self._ready_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="slideshow-poller")
        self._thread.start()
        if block_until_ready:
            return self._wait_until_ready(timeout)
        return True

    # ------------------------------------------------------------------
    def stop(self) -> None:
        """Signal the background thread to stop and join it."""

        self._stop_event.set()
        self._ready_event.clear()
        if self._thread is not None:
            self._thread.join(timeout=self._config.shutdown_timeout)

    # ------------------------------------------------------------------
    def wait_until_running(self, timeout: Optional[float] = None) -> bool:
        """Wait until the first window has been received."""

        return self._wait_until_ready(timeout)

    # ------------------------------------------------------------------
    def _run(self) -> None:
        self._logger.info("Poller thread started")
        while not self._stop_event.is_set():
            delay = self._poll_once()
            self._stop_event.wait(delay)
        self._logger.debug("Poller thread exiting")

    # ------------------------------------------------------------------
    def _poll_once(self) -> float:
        """Fetch the current window and return the delay until the next poll."""

        try:
            window = self._fetch_window()
        except EmptyCatalogError:
            if not self._empty:
                self._logger.info(
                    "Nothing to display, polling every %.0f seconds", self._config.empty_interval
                )
                self._empty = True
                self._current = None
                self._notify(None)
            return self._config.empty_interval
        except Exception:
            self._logger.exception("Failed to fetch the current slideshow window")
            return self._config.retry_interval

        self._empty = False
        if window != self._current:
            self._current = window
            self._notify(window)
        self._ready_event.set()
        return self._delay_until(window.next_poll)

    # ------------------------------------------------------------------
    def _notify(self, window: Optional[PlaybackWindow]) -> None:
        try:
            self._on_change(window)
        except Exception:
            self._logger.exception("Slideshow change handler failed")

    # ------------------------------------------------------------------
    def _delay_until(self, instant: datetime) -> float:
        delay = (instant - self._clock()).total_seconds()
        return min(max(delay, self._config.min_interval), self._config.max_interval)

    # ------------------------------------------------------------------
    def _wait_until_ready(self, timeout: Optional[float]) -> bool:
        if self._ready_event.is_set():
            return True
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if self._stop_event.is_set():
                return False
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait_time = min(remaining, self._config.min_interval)
            else:
                wait_time = self._config.min_interval
            if self._ready_event.wait(wait_time):
                return True
