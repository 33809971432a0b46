"""
Parallel breadth-first crawler for graphs discovered through a remote
neighbor-lookup service.
"""

__version__ = "1.0.0"
