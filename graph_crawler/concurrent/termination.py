"""
Termination detection for the parallel crawl.

A single pending-work counter is incremented for every task created and
decremented for every task fully processed. A worker decrements only after
all pushes for its task have been issued, so the counter can only reach
zero when nothing is queued and nothing is in flight. The decrement that
reaches zero closes the work queue; there is no polling.
"""

import threading
from typing import Optional

from graph_crawler.utils.logging import get_logger
from graph_crawler.utils.errors import CrawlerError
from .models import CrawlerState
from .thread_safe import WorkQueue


logger = get_logger(__name__)


class TerminationDetector:
    """Closes the work queue exactly once, when pending work drops to zero."""

    def __init__(self, work_queue: WorkQueue):
        self._queue = work_queue
        self._pending = 0
        self._state = CrawlerState.NOT_STARTED
        self._lock = threading.Lock()
        self._finished = threading.Event()

    @property
    def state(self) -> CrawlerState:
        with self._lock:
            return self._state

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    def start(self, initial_pending: int = 1) -> None:
        """
        Enter the running state with the seed tasks already counted.

        Args:
            initial_pending: Number of tasks enqueued before workers start

        Raises:
            CrawlerError: If already started or initial_pending is not positive
        """
        if initial_pending < 1:
            raise CrawlerError(
                "initial_pending must be positive",
                {"initial_pending": initial_pending}
            )
        with self._lock:
            if self._state is not CrawlerState.NOT_STARTED:
                raise CrawlerError(
                    "Termination detector already started",
                    {"state": self._state.value}
                )
            self._pending = initial_pending
            self._state = CrawlerState.RUNNING

    def task_created(self) -> None:
        """
        Account for a newly enqueued task.

        Must be called before the task's parent is reported complete.

        Raises:
            CrawlerError: If the crawl is not running
        """
        with self._lock:
            if self._state is not CrawlerState.RUNNING:
                raise CrawlerError(
                    "Cannot create tasks outside a running crawl",
                    {"state": self._state.value}
                )
            self._pending += 1

    def task_completed(self) -> None:
        """
        Account for a fully processed task, including all of its enqueues.

        Raises:
            CrawlerError: If the crawl is not running
        """
        with self._lock:
            if self._state is not CrawlerState.RUNNING:
                raise CrawlerError(
                    "Cannot complete tasks outside a running crawl",
                    {"state": self._state.value}
                )
            self._pending -= 1
            if self._pending > 0:
                return
            self._state = CrawlerState.FINISHED

        logger.debug("Pending work reached zero, signaling shutdown")
        self._queue.signal_shutdown()
        self._finished.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the crawl is finished.

        Args:
            timeout: Optional timeout in seconds

        Returns:
            True if finished, False if the timeout expired first
        """
        return self._finished.wait(timeout)
