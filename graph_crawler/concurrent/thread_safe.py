"""
Thread-safe data structures shared by the crawl workers.
"""

import threading
from collections import deque
from typing import Any, Optional, Set, Tuple


class ThreadSafeCounter:
    """Thread-safe counter with atomic operations."""

    def __init__(self, initial_value: int = 0):
        """
        Initialize counter with initial value.

        Args:
            initial_value: Starting value for the counter
        """
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """
        Atomically increment counter and return new value.

        Args:
            amount: Amount to increment by (default: 1)

        Returns:
            New counter value after increment
        """
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        """
        Atomically decrement counter and return new value.

        Args:
            amount: Amount to decrement by (default: 1)

        Returns:
            New counter value after decrement
        """
        with self._lock:
            self._value -= amount
            return self._value

    def get_value(self) -> int:
        """Get current counter value."""
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"ThreadSafeCounter(value={self.get_value()})"


class VisitedSet:
    """Grow-only set of discovered node ids with atomic check-and-insert."""

    def __init__(self, initial_items: Optional[Set[Any]] = None):
        self._set: Set[Any] = set(initial_items) if initial_items else set()
        self._lock = threading.Lock()

    def insert_if_absent(self, item: Any) -> bool:
        """
        Insert item unless already present.

        Exactly one of any number of concurrent callers passing the same
        item observes True.

        Args:
            item: Node id to insert

        Returns:
            True if this call performed the insertion
        """
        with self._lock:
            if item in self._set:
                return False
            self._set.add(item)
            return True

    def __contains__(self, item: Any) -> bool:
        with self._lock:
            return item in self._set

    def __len__(self) -> int:
        with self._lock:
            return len(self._set)

    def snapshot(self) -> Set[Any]:
        """Return a copy of the current members."""
        with self._lock:
            return self._set.copy()

    def __repr__(self) -> str:
        return f"VisitedSet(size={len(self)})"


class WorkQueue:
    """
    Blocking multi-producer/multi-consumer queue with a shutdown signal.

    Consumers suspend on a condition variable; they are woken by push()
    or by signal_shutdown(), never by polling. Once shut down, pop()
    keeps handing out whatever is left and then reports ok=False.
    """

    def __init__(self):
        self._items: deque = deque()
        self._condition = threading.Condition(threading.Lock())
        self._shutdown = False
        self._put_count = 0
        self._get_count = 0

    def push(self, item: Any) -> None:
        """
        Enqueue item unconditionally and wake one waiting consumer.

        Args:
            item: Item to enqueue
        """
        with self._condition:
            self._items.append(item)
            self._put_count += 1
            self._condition.notify()

    def pop(self, timeout: Optional[float] = None) -> Tuple[Optional[Any], bool]:
        """
        Block until an item is available or the queue is shut down.

        Args:
            timeout: Optional bound on the wait in seconds

        Returns:
            (item, True) when an item was dequeued; (None, False) once the
            queue is shut down and drained, or when the timeout expires
        """
        with self._condition:
            ready = self._condition.wait_for(
                lambda: bool(self._items) or self._shutdown,
                timeout=timeout
            )
            if not ready or not self._items:
                return None, False
            self._get_count += 1
            return self._items.popleft(), True

    def signal_shutdown(self) -> None:
        """Permanently close the queue and wake every blocked consumer. Idempotent."""
        with self._condition:
            self._shutdown = True
            self._condition.notify_all()

    def is_shutdown(self) -> bool:
        with self._condition:
            return self._shutdown

    def size(self) -> int:
        """Get number of queued items."""
        with self._condition:
            return len(self._items)

    def empty(self) -> bool:
        with self._condition:
            return not self._items

    def __len__(self) -> int:
        return self.size()

    def get_stats(self) -> dict:
        """
        Get queue statistics.

        Returns:
            Dictionary with queue statistics
        """
        with self._condition:
            return {
                "size": len(self._items),
                "shutdown": self._shutdown,
                "put_count": self._put_count,
                "get_count": self._get_count,
            }
