"""
Infinite-scroll window over the filtered and sorted grid rows.

The controller reveals rows one page at a time. A load is triggered by the
bottom sentinel becoming visible, runs after a short delay, and at most one
load is ever in flight.
"""

import threading
from typing import Callable, List, Optional, Sequence

from comax.config import DEFAULT_GRID_PAGE_SIZE
from comax.logger import get_logger

logger = get_logger(__name__)

Scheduler = Callable[[float, Callable[[], None]], None]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> None:
    """Run callback on a daemon timer thread after delay seconds."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


def immediate_scheduler(delay: float, callback: Callable[[], None]) -> None:
    """Run callback synchronously, ignoring the delay."""
    callback()


class PaginationController:
    """Tracks how many rows of the current result set are displayed."""

    def __init__(self, page_size: int = DEFAULT_GRID_PAGE_SIZE, delay: float = 0.3,
                 scheduler: Optional[Scheduler] = None):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.delay = delay
        self._scheduler = scheduler or timer_scheduler
        self._lock = threading.RLock()
        self._rows: Sequence = []
        self._generation = 0
        self._loading = False
        self.displayed_count = 0

    @property
    def total(self) -> int:
        return len(self._rows)

    @property
    def has_more(self) -> bool:
        with self._lock:
            return self.displayed_count < len(self._rows)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def set_source(self, rows: Sequence, preserve_window: bool = False) -> None:
        """
        Point the controller at a new result set.

        A result set with a new identity resets the window to one page. With
        preserve_window the current count is kept (bounded by the new total),
        which suits refreshes that only changed row contents.
        """
        with self._lock:
            if rows is self._rows:
                return
            previous = self.displayed_count
            self._rows = rows
            self._generation += 1
            self._loading = False
            if preserve_window:
                self.displayed_count = min(max(previous, self.page_size), len(rows))
            else:
                self.displayed_count = min(self.page_size, len(rows))

    def visible(self) -> List:
        """Rows currently revealed, in result order."""
        with self._lock:
            return list(self._rows[:self.displayed_count])

    def on_sentinel_visible(self) -> bool:
        """
        Handle the bottom sentinel scrolling into view.

        Returns:
            True if a load was scheduled, False if nothing remains or a load
            is already in flight
        """
        with self._lock:
            if self._loading or self.displayed_count >= len(self._rows):
                return False
            self._loading = True
            generation = self._generation

        self._scheduler(self.delay, lambda: self._complete_load(generation))
        return True

    def _complete_load(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                # The result set changed while waiting; its window already reset
                logger.debug("Discarding stale page load")
                return
            self.displayed_count = min(self.displayed_count + self.page_size, len(self._rows))
            self._loading = False
            logger.debug(f"Revealed {self.displayed_count}/{len(self._rows)} rows")
