"""
Pytest configuration and fixtures for graph crawler tests.
"""

import logging

import pytest
from hypothesis import settings, Verbosity

from graph_crawler.config import CrawlerConfig
from graph_crawler.services.neighbor_service import StaticNeighborService

# Configure Hypothesis for faster test runs
settings.register_profile("fast", max_examples=25, deadline=None, verbosity=Verbosity.quiet)
settings.register_profile("thorough", max_examples=200, deadline=None, verbosity=Verbosity.normal)

# Use fast profile by default
settings.load_profile("fast")


@pytest.fixture
def crawler_config():
    """Configuration pointing at an unroutable service with a short timeout."""
    return CrawlerConfig(service_url="http://neighbors.test/neighbors/", request_timeout=1.0)


@pytest.fixture
def diamond_graph():
    """A->{B,C}, B->{A,D}, C->{}, D->{}."""
    return {"A": ["B", "C"], "B": ["A", "D"], "C": [], "D": []}


@pytest.fixture
def diamond_service(diamond_graph):
    return StaticNeighborService(diamond_graph)


def pytest_configure(config):
    """Configure pytest with custom settings."""
    logging.getLogger("graph_crawler").setLevel(logging.WARNING)
    logging.getLogger("hypothesis").setLevel(logging.WARNING)


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "properties" in item.fspath.basename:
            item.add_marker(pytest.mark.property)

        if "integration" in item.fspath.basename:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
