"""
Neighbor lookup services.

A NeighborService answers "which nodes does this node point to". The HTTP
realization issues GET {service_url}/{url-encoded node} and expects
{"neighbors": [...]}; anything else raises TransportError or ParseError.
"""

import json
import time
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from graph_crawler.config import CrawlerConfig
from graph_crawler.utils.logging import get_logger
from graph_crawler.utils.errors import TransportError, ParseError


logger = get_logger(__name__)

# urllib3 blocks until a whole chunk has arrived, so the body is read a byte
# at a time for the deadline check to run between slow writes
BODY_CHUNK_SIZE = 1


def parse_neighbors(payload: Any, node: Optional[str] = None) -> List[str]:
    """
    Extract the neighbor list from a decoded response body.

    Non-string array elements are skipped.

    Args:
        payload: Decoded JSON value
        node: Node the payload belongs to, for error context

    Returns:
        Neighbor ids in response order

    Raises:
        ParseError: If payload is not an object with a "neighbors" array
    """
    if not isinstance(payload, dict):
        raise ParseError(
            "Response body is not a JSON object",
            node=node,
            details={"type": type(payload).__name__}
        )

    neighbors = payload.get("neighbors")
    if not isinstance(neighbors, list):
        raise ParseError(
            "Response has no 'neighbors' array",
            node=node,
            details={"keys": sorted(payload.keys())}
        )

    return [neighbor for neighbor in neighbors if isinstance(neighbor, str)]


class NeighborService(ABC):
    """Fetches the outgoing neighbors of a node."""

    @abstractmethod
    def fetch(self, node: str) -> List[str]:
        """
        Fetch the neighbors of node.

        Raises:
            TransportError: If the lookup could not be performed
            ParseError: If the lookup returned malformed data
        """

    def close(self) -> None:
        """Release any resources held by the service."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class HTTPNeighborService(NeighborService):
    """NeighborService backed by a remote JSON endpoint."""

    def __init__(self, config: CrawlerConfig):
        """
        Initialize HTTP neighbor service.

        Args:
            config: Crawler configuration (service URL, timeout, user agent, debug)
        """
        self.config = config
        self.timeout = config.request_timeout
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retries disabled."""
        session = requests.Session()

        # A failed lookup forfeits the node's neighbors; never retry
        adapter = HTTPAdapter(max_retries=Retry(total=0))
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': 'application/json',
        })

        return session

    @property
    def session(self) -> requests.Session:
        """Session owned by the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._create_session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def url_for(self, node: str) -> str:
        """Build the lookup URL for node."""
        return self.config.neighbor_url(quote(node, safe=''))

    def fetch(self, node: str) -> List[str]:
        """
        GET the neighbor list of node.

        Args:
            node: Node id (url-encoded before use)

        Returns:
            Neighbor ids

        Raises:
            TransportError: Connection failure, non-2xx status, or the whole
                exchange taking longer than request_timeout
            ParseError: Body is not JSON or lacks a "neighbors" array
        """
        url = self.url_for(node)
        deadline = time.monotonic() + self.timeout

        if self.config.debug:
            logger.debug(f"Sending request to: {url}")

        try:
            response = self.session.request(
                "GET", url, timeout=self.timeout, allow_redirects=True, stream=True
            )
            try:
                response.raise_for_status()
                body = self._read_body(response, deadline, node, url)
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Neighbor request failed: {e}",
                node=node,
                details={"url": url, "error_type": type(e).__name__}
            )

        if self.config.debug:
            logger.debug(f"Response received for {node}: {body.decode('utf-8', errors='replace')}")

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ParseError(
                f"Response body is not valid JSON: {e}",
                node=node,
                details={"url": url}
            )

        return parse_neighbors(payload, node=node)

    def _read_body(self, response: requests.Response, deadline: float,
                   node: str, url: str) -> bytes:
        """
        Read a streamed response body, giving up once deadline has passed.

        Raises:
            TransportError: If the deadline passes before the body is complete
        """
        body = bytearray()
        self._check_deadline(deadline, node, url)
        for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
            body.extend(chunk)
            self._check_deadline(deadline, node, url)
        return bytes(body)

    def _check_deadline(self, deadline: float, node: str, url: str) -> None:
        if time.monotonic() > deadline:
            raise TransportError(
                f"Neighbor request exceeded {self.timeout}s",
                node=node,
                details={"url": url, "error_type": "Timeout"}
            )

    def close(self) -> None:
        """Close every session opened by worker threads."""
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()


class StaticNeighborService(NeighborService):
    """In-memory NeighborService over a fixed adjacency map."""

    def __init__(self, graph: Mapping[str, Iterable[str]],
                 failing_nodes: Optional[Iterable[str]] = None):
        """
        Args:
            graph: Adjacency map; nodes absent from it have no neighbors
            failing_nodes: Nodes whose lookup raises ParseError
        """
        self._graph: Dict[str, List[str]] = {node: list(neighbors) for node, neighbors in graph.items()}
        self._failing = set(failing_nodes or ())
        self._calls: Dict[str, int] = {}
        self._lock = threading.Lock()

    def fetch(self, node: str) -> List[str]:
        with self._lock:
            self._calls[node] = self._calls.get(node, 0) + 1
        if node in self._failing:
            raise ParseError("Malformed neighbor data", node=node)
        return list(self._graph.get(node, []))

    def call_counts(self) -> Dict[str, int]:
        """Number of fetch calls per node."""
        with self._lock:
            return dict(self._calls)

    @property
    def total_calls(self) -> int:
        with self._lock:
            return sum(self._calls.values())
