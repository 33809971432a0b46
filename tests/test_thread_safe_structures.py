"""
Unit tests for the shared crawl structures: counter, visited set, work queue
and result collector.
"""

import threading
import time

import pytest
from hypothesis import given, strategies as st

from graph_crawler.concurrent.models import CrawlTask, ResultCollector
from graph_crawler.concurrent.thread_safe import ThreadSafeCounter, VisitedSet, WorkQueue
from graph_crawler.utils.errors import CrawlerError


class TestThreadSafeCounter:
    """Test atomic counter operations."""

    def test_increment_and_decrement_return_new_value(self):
        counter = ThreadSafeCounter(5)
        assert counter.increment() == 6
        assert counter.increment(4) == 10
        assert counter.decrement(3) == 7
        assert counter.get_value() == 7

    def test_concurrent_increments(self):
        counter = ThreadSafeCounter()

        def bump():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter.get_value() == 8000


class TestVisitedSet:
    """Test atomic check-and-insert."""

    def test_first_insert_wins(self):
        visited = VisitedSet()
        assert visited.insert_if_absent("A") is True
        assert visited.insert_if_absent("A") is False
        assert "A" in visited
        assert len(visited) == 1

    def test_initial_items_are_members(self):
        visited = VisitedSet({"A", "B"})
        assert visited.insert_if_absent("A") is False
        assert visited.snapshot() == {"A", "B"}

    def test_concurrent_discovery_has_exactly_one_winner(self):
        visited = VisitedSet()
        barrier = threading.Barrier(16)
        outcomes = []
        outcomes_lock = threading.Lock()

        def discover():
            barrier.wait()
            won = visited.insert_if_absent("shared")
            with outcomes_lock:
                outcomes.append(won)

        threads = [threading.Thread(target=discover) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(True) == 1
        assert outcomes.count(False) == 15

    @given(st.lists(st.text(min_size=1, max_size=5), max_size=50))
    def test_successful_inserts_equal_distinct_items(self, items):
        """Property: the number of True results equals the number of distinct ids."""
        visited = VisitedSet()
        successes = sum(1 for item in items if visited.insert_if_absent(item))
        assert successes == len(set(items))
        assert visited.snapshot() == set(items)


class TestWorkQueue:
    """Test blocking pop and shutdown semantics."""

    def test_push_then_pop(self):
        queue = WorkQueue()
        queue.push(CrawlTask("A", 0))
        task, ok = queue.pop()
        assert ok is True
        assert task == CrawlTask("A", 0)
        assert queue.empty()

    def test_single_producer_order_is_fifo(self):
        queue = WorkQueue()
        for i in range(5):
            queue.push(i)
        assert [queue.pop()[0] for _ in range(5)] == [0, 1, 2, 3, 4]

    def test_pop_times_out_when_empty(self):
        queue = WorkQueue()
        task, ok = queue.pop(timeout=0.05)
        assert task is None
        assert ok is False
        assert not queue.is_shutdown()

    def test_shutdown_drains_remaining_items_first(self):
        queue = WorkQueue()
        queue.push("x")
        queue.signal_shutdown()

        assert queue.pop() == ("x", True)
        assert queue.pop() == (None, False)

    def test_shutdown_is_idempotent(self):
        queue = WorkQueue()
        queue.signal_shutdown()
        queue.signal_shutdown()
        assert queue.is_shutdown()
        assert queue.pop() == (None, False)

    def test_shutdown_wakes_all_blocked_consumers(self):
        queue = WorkQueue()
        results = []
        results_lock = threading.Lock()

        def consume():
            outcome = queue.pop()
            with results_lock:
                results.append(outcome)

        consumers = [threading.Thread(target=consume) for _ in range(6)]
        for t in consumers:
            t.start()

        time.sleep(0.05)
        queue.signal_shutdown()
        for t in consumers:
            t.join(timeout=2.0)

        assert not any(t.is_alive() for t in consumers)
        assert results == [(None, False)] * 6

    def test_push_wakes_blocked_consumer(self):
        queue = WorkQueue()
        received = []

        consumer = threading.Thread(target=lambda: received.append(queue.pop()))
        consumer.start()
        time.sleep(0.05)
        queue.push("item")
        consumer.join(timeout=2.0)

        assert received == [("item", True)]

    def test_concurrent_producers_and_consumers_lose_nothing(self):
        queue = WorkQueue()
        consumed = []
        consumed_lock = threading.Lock()

        def produce(offset):
            for i in range(200):
                queue.push(offset + i)

        def consume():
            while True:
                item, ok = queue.pop()
                if not ok:
                    return
                with consumed_lock:
                    consumed.append(item)

        consumers = [threading.Thread(target=consume) for _ in range(4)]
        producers = [threading.Thread(target=produce, args=(n * 1000,)) for n in range(4)]
        for t in consumers + producers:
            t.start()
        for t in producers:
            t.join()
        queue.signal_shutdown()
        for t in consumers:
            t.join(timeout=5.0)

        assert sorted(consumed) == sorted(n * 1000 + i for n in range(4) for i in range(200))
        stats = queue.get_stats()
        assert stats["put_count"] == stats["get_count"] == 800


class TestCrawlTask:

    def test_child_is_one_level_deeper(self):
        assert CrawlTask("A", 2).child("B") == CrawlTask("B", 3)

    def test_negative_depth_rejected(self):
        with pytest.raises(CrawlerError):
            CrawlTask("A", -1)


class TestResultCollector:

    def test_append_preserves_order(self):
        collector = ResultCollector()
        for node in ["A", "C", "B"]:
            collector.append(node)
        assert collector.snapshot() == ["A", "C", "B"]
        assert len(collector) == 3

    def test_snapshot_is_a_copy(self):
        collector = ResultCollector()
        collector.append("A")
        snapshot = collector.snapshot()
        snapshot.append("Z")
        assert collector.snapshot() == ["A"]
