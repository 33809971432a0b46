"""
Parallel breadth-first crawl controller.
Wires the queue, visited set, result log, termination detector and worker pool together.
"""

import time
from datetime import datetime
from typing import Optional

from graph_crawler.config import CrawlerConfig
from graph_crawler.services.neighbor_service import NeighborService, HTTPNeighborService
from graph_crawler.utils.logging import get_logger
from graph_crawler.utils.errors import CrawlerError
from .models import CrawlTask, CrawlResult, NodeID, ResultCollector
from .termination import TerminationDetector
from .thread_pool import WorkerPool
from .thread_safe import VisitedSet, WorkQueue


logger = get_logger(__name__)


class ParallelBFSCrawler:
    """Breadth-first traversal of a remote graph using a fixed worker pool."""

    def __init__(self, service: NeighborService, config: Optional[CrawlerConfig] = None):
        """
        Initialize crawler.

        Args:
            service: Neighbor lookup service shared by all workers
            config: Crawler configuration (defaults to CrawlerConfig())
        """
        self.service = service
        self.config = config or CrawlerConfig()
        self.logger = get_logger(__name__)

        self._last_pool: Optional[WorkerPool] = None

    def _validate(self, start: NodeID, max_depth: int, num_workers: int) -> None:
        errors = []
        if not isinstance(start, str) or not start:
            errors.append("start node must be a non-empty string")
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            errors.append("max_depth must be a non-negative integer")
        if isinstance(num_workers, bool) or not isinstance(num_workers, int) or num_workers < 1:
            errors.append("num_workers must be a positive integer")
        if errors:
            raise CrawlerError("Invalid crawl parameters", {"errors": errors})

    def crawl(self, start: NodeID, max_depth: int, num_workers: Optional[int] = None) -> CrawlResult:
        """
        Crawl outward from start up to max_depth hops.

        Args:
            start: Start node id
            max_depth: Maximum distance from start; nodes at this depth are
                recorded but their neighbors are not fetched
            num_workers: Number of worker threads (defaults to config.max_workers)

        Returns:
            CrawlResult with visited nodes in the order processing began

        Raises:
            CrawlerError: If parameters are invalid
        """
        if num_workers is None:
            num_workers = self.config.max_workers
        self._validate(start, max_depth, num_workers)

        started_at = datetime.now()
        start_time = time.perf_counter()
        self.logger.info(f"Starting crawl from {start!r}: max_depth={max_depth}, workers={num_workers}")

        work_queue = WorkQueue()
        visited = VisitedSet()
        results = ResultCollector()
        detector = TerminationDetector(work_queue)

        visited.insert_if_absent(start)
        work_queue.push(CrawlTask(node=start, depth=0))
        detector.start(initial_pending=1)

        pool = WorkerPool(
            num_workers=num_workers,
            work_queue=work_queue,
            visited=visited,
            results=results,
            detector=detector,
            service=self.service,
            max_depth=max_depth
        )
        self._last_pool = pool
        pool.start()

        detector.wait()
        pool.join()

        elapsed = time.perf_counter() - start_time
        stats = pool.get_stats()
        nodes = results.snapshot()

        self.logger.info(
            f"Crawl finished: {len(nodes)} nodes visited in {elapsed:.3f}s "
            f"({stats['fetches']} fetches, {stats['failed_fetches']} failed)"
        )

        return CrawlResult(
            start_node=start,
            max_depth=max_depth,
            nodes=nodes,
            worker_count=num_workers,
            elapsed_seconds=elapsed,
            fetch_count=stats["fetches"],
            failed_fetches=stats["failed_fetches"],
            started_at=started_at,
            worker_stats=stats["workers"]
        )

    @property
    def last_pool(self) -> Optional[WorkerPool]:
        """Worker pool of the most recent crawl, for inspection."""
        return self._last_pool


def bfs_parallel(
    start: NodeID,
    depth: int,
    num_workers: Optional[int] = None,
    service: Optional[NeighborService] = None,
    config: Optional[CrawlerConfig] = None
) -> CrawlResult:
    """
    Run one parallel crawl.

    num_workers defaults to config.max_workers (8 unless configured). When
    no service is given an HTTPNeighborService is created from config and
    closed afterwards.
    """
    config = config or CrawlerConfig()
    if service is not None:
        return ParallelBFSCrawler(service, config).crawl(start, depth, num_workers)

    with HTTPNeighborService(config) as http_service:
        return ParallelBFSCrawler(http_service, config).crawl(start, depth, num_workers)
