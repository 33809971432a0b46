"""
Custom exception classes for the graph crawler.
"""

from typing import Optional, Dict, Any


class GraphCrawlerError(Exception):
    """Base exception for all graph crawler errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ArgumentError(GraphCrawlerError):
    """Exception raised for malformed command-line input."""
    pass


class ConfigurationError(GraphCrawlerError):
    """Exception raised for configuration-related issues."""
    pass


class CrawlerError(GraphCrawlerError):
    """Exception raised when the traversal engine is misused."""
    pass


class NeighborServiceError(GraphCrawlerError):
    """Exception raised when a neighbor lookup cannot produce a result."""
    
    def __init__(self, message: str, node: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.node = node


class TransportError(NeighborServiceError):
    """Neighbor service unreachable, timed out, or answered with an error status."""
    pass


class ParseError(NeighborServiceError):
    """Neighbor service response body does not have the expected shape."""
    pass
