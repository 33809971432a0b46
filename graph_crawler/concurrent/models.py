"""
Data models for the parallel graph traversal.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional

from graph_crawler.utils.errors import CrawlerError


NodeID = str


class CrawlerState(Enum):
    """Lifecycle of a single crawl."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


class WorkerState(Enum):
    """Worker thread state."""
    STARTING = "starting"
    IDLE = "idle"
    WORKING = "working"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CrawlTask:
    """A node waiting to be visited, together with its distance from the start node."""
    node: NodeID
    depth: int

    def __post_init__(self):
        if self.depth < 0:
            raise CrawlerError(
                "Task depth must be non-negative",
                {"node": self.node, "depth": self.depth}
            )

    def child(self, neighbor: NodeID) -> "CrawlTask":
        """Task for a neighbor discovered while expanding this one."""
        return CrawlTask(node=neighbor, depth=self.depth + 1)


@dataclass
class WorkerStatus:
    """Status information for a worker thread."""
    worker_id: str
    state: WorkerState = WorkerState.STARTING
    current_node: Optional[NodeID] = None
    tasks_processed: int = 0
    fetches: int = 0
    failed_fetches: int = 0
    last_activity: datetime = field(default_factory=datetime.now)

    def update_activity(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = datetime.now()

    def start_task(self, node: NodeID) -> None:
        """Mark worker as working on a node."""
        self.state = WorkerState.WORKING
        self.current_node = node
        self.update_activity()

    def complete_task(self) -> None:
        """Mark the current node as fully processed."""
        self.state = WorkerState.IDLE
        self.current_node = None
        self.tasks_processed += 1
        self.update_activity()


@dataclass
class CrawlResult:
    """Overall result of a parallel crawl."""
    start_node: NodeID
    max_depth: int
    nodes: List[NodeID]
    worker_count: int
    elapsed_seconds: float
    fetch_count: int = 0
    failed_fetches: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    worker_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def visited_count(self) -> int:
        return len(self.nodes)

    def summary_line(self) -> str:
        """One-line run summary written to stderr by the CLI."""
        return (
            f"Threads: {self.worker_count}, "
            f"Nodes visited: {self.visited_count}, "
            f"Time: {self.elapsed_seconds:.6f}s"
        )


class ResultCollector:
    """Thread-safe append-only log of nodes, in the order their processing began."""

    def __init__(self):
        self._nodes: List[NodeID] = []
        self._lock = threading.Lock()

    def append(self, node: NodeID) -> None:
        """
        Record a node whose processing has just begun.

        Args:
            node: Node being visited
        """
        with self._lock:
            self._nodes.append(node)

    def snapshot(self) -> List[NodeID]:
        """
        Get all recorded nodes.

        Returns:
            Copy of the recorded sequence
        """
        with self._lock:
            return self._nodes.copy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)
