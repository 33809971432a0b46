"""
Neighbor lookup services used to discover the graph on demand.
"""

from .neighbor_service import (
    NeighborService,
    HTTPNeighborService,
    StaticNeighborService,
    parse_neighbors
)

__all__ = [
    'NeighborService',
    'HTTPNeighborService',
    'StaticNeighborService',
    'parse_neighbors'
]
