"""
Worker pool for the parallel graph traversal.
"""

import threading
from typing import List, Dict, Any, Optional

from graph_crawler.services.neighbor_service import NeighborService
from graph_crawler.utils.logging import get_logger
from graph_crawler.utils.errors import CrawlerError, NeighborServiceError
from .models import CrawlTask, NodeID, ResultCollector, WorkerState, WorkerStatus
from .termination import TerminationDetector
from .thread_safe import ThreadSafeCounter, VisitedSet, WorkQueue


logger = get_logger(__name__)


class WorkerThread(threading.Thread):
    """One of N identical workers draining the shared work queue."""

    def __init__(
        self,
        worker_id: str,
        pool: "WorkerPool"
    ):
        """
        Initialize worker thread.

        Args:
            worker_id: Unique identifier for this worker
            pool: Pool owning the shared structures this worker operates on
        """
        super().__init__(name=f"CrawlerWorker-{worker_id}", daemon=True)

        self.worker_id = worker_id
        self.pool = pool
        self.status = WorkerStatus(worker_id=worker_id)
        self.logger = get_logger(f"{__name__}.{worker_id}")

    def run(self) -> None:
        """Pop tasks until the queue reports shutdown."""
        self.status.state = WorkerState.IDLE
        self.status.update_activity()

        try:
            while True:
                task, ok = self.pool.work_queue.pop()
                if not ok:
                    break

                self.pool.active_count.increment()
                self.status.start_task(task.node)
                try:
                    self._process_task(task)
                except Exception as e:
                    # Completion is still reported below
                    self.status.failed_fetches += 1
                    self.logger.exception(f"Worker {self.worker_id} failed processing {task.node!r}: {e}")
                finally:
                    self.status.complete_task()
                    self.pool.active_count.decrement()
                    self.pool.detector.task_completed()
        finally:
            self.status.state = WorkerState.STOPPED
            self.status.update_activity()
            self.logger.debug(f"Worker {self.worker_id} stopped")

    def _process_task(self, task: CrawlTask) -> None:
        """
        Record the task's node and, below the depth limit, enqueue its unseen neighbors.

        Every push happens before this method returns, which is what lets the
        caller report completion to the termination detector.
        """
        self.logger.debug(f"Worker {self.worker_id} visiting {task.node!r} at depth {task.depth}")
        self.pool.results.append(task.node)

        if task.depth >= self.pool.max_depth:
            return

        for neighbor in self._fetch_neighbors(task.node):
            if self.pool.visited.insert_if_absent(neighbor):
                self.pool.detector.task_created()
                self.pool.work_queue.push(task.child(neighbor))

    def _fetch_neighbors(self, node: NodeID) -> List[NodeID]:
        """
        Fetch neighbors of node, treating lookup failures as no neighbors.

        Returns:
            Neighbor ids, empty on TransportError or ParseError
        """
        self.status.fetches += 1
        try:
            return self.pool.service.fetch(node)
        except NeighborServiceError as e:
            self.status.failed_fetches += 1
            self.logger.warning(f"Neighbor lookup for {node!r} failed, treating as no neighbors: {e.message}")
            return []

    def get_stats(self) -> Dict[str, Any]:
        """
        Get worker statistics.

        Returns:
            Dictionary with worker stats
        """
        return {
            "worker_id": self.worker_id,
            "state": self.status.state.value,
            "current_node": self.status.current_node,
            "tasks_processed": self.status.tasks_processed,
            "fetches": self.status.fetches,
            "failed_fetches": self.status.failed_fetches,
            "last_activity": self.status.last_activity.isoformat(),
            "is_alive": self.is_alive()
        }


class WorkerPool:
    """Fixed set of symmetric workers sharing one queue, visited set and result log."""

    def __init__(
        self,
        num_workers: int,
        work_queue: WorkQueue,
        visited: VisitedSet,
        results: ResultCollector,
        detector: TerminationDetector,
        service: NeighborService,
        max_depth: int
    ):
        """
        Initialize worker pool.

        Args:
            num_workers: Number of worker threads to run
            work_queue: Shared task queue
            visited: Shared set of discovered nodes
            results: Shared log of visited nodes
            detector: Termination detector closing the queue when work runs out
            service: Neighbor lookup service
            max_depth: Tasks at this depth are recorded but not expanded

        Raises:
            CrawlerError: If num_workers or max_depth is out of range
        """
        if num_workers < 1:
            raise CrawlerError("num_workers must be positive", {"num_workers": num_workers})
        if max_depth < 0:
            raise CrawlerError("max_depth must be non-negative", {"max_depth": max_depth})

        self.num_workers = num_workers
        self.work_queue = work_queue
        self.visited = visited
        self.results = results
        self.detector = detector
        self.service = service
        self.max_depth = max_depth

        self.active_count = ThreadSafeCounter()
        self._workers: List[WorkerThread] = []
        self._started = False
        self._lock = threading.Lock()

    @property
    def workers(self) -> List[WorkerThread]:
        return list(self._workers)

    def start(self) -> None:
        """
        Create and start all worker threads.

        Raises:
            CrawlerError: If the pool was already started
        """
        with self._lock:
            if self._started:
                raise CrawlerError("Worker pool already started")
            self._started = True

            logger.debug(f"Starting {self.num_workers} worker threads")
            for i in range(self.num_workers):
                worker = WorkerThread(worker_id=f"worker_{i}", pool=self)
                self._workers.append(worker)
                worker.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for all workers to exit.

        Args:
            timeout: Optional timeout in seconds, applied to each worker

        Returns:
            True if every worker exited
        """
        for worker in self._workers:
            worker.join(timeout)
        return not any(worker.is_alive() for worker in self._workers)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get aggregate pool statistics.

        Returns:
            Dictionary with totals and per-worker stats
        """
        worker_stats = {worker.worker_id: worker.get_stats() for worker in self._workers}
        return {
            "num_workers": self.num_workers,
            "active_workers": self.active_count.get_value(),
            "tasks_processed": sum(s["tasks_processed"] for s in worker_stats.values()),
            "fetches": sum(s["fetches"] for s in worker_stats.values()),
            "failed_fetches": sum(s["failed_fetches"] for s in worker_stats.values()),
            "workers": worker_stats
        }
