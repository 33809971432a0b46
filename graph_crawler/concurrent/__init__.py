"""
Concurrent breadth-first traversal engine.

This module provides:
- Shared work queue with a shutdown signal
- Deduplicating visited set
- Ordered result log
- Pending-work termination detection
- Fixed-size worker pool and the crawl controller

Main Components:
- ParallelBFSCrawler: Wires everything together and runs a crawl
- WorkerPool: Worker thread lifecycle management
- TerminationDetector: Closes the queue once no work remains
"""

from .models import (
    NodeID,
    CrawlTask,
    CrawlResult,
    CrawlerState,
    ResultCollector,
    WorkerState,
    WorkerStatus
)

from .thread_safe import (
    ThreadSafeCounter,
    VisitedSet,
    WorkQueue
)

from .termination import TerminationDetector
from .thread_pool import WorkerPool, WorkerThread
from .controller import ParallelBFSCrawler, bfs_parallel

__all__ = [
    # Core models
    'NodeID',
    'CrawlTask',
    'CrawlResult',
    'CrawlerState',
    'ResultCollector',
    'WorkerState',
    'WorkerStatus',

    # Thread-safe utilities
    'ThreadSafeCounter',
    'VisitedSet',
    'WorkQueue',

    # Main components
    'TerminationDetector',
    'WorkerPool',
    'WorkerThread',
    'ParallelBFSCrawler',
    'bfs_parallel'
]
