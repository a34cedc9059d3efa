"""Pytest configuration and shared fixtures."""
import os

import pytest
import structlog


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "benchmark: mark test as benchmark")


def pytest_collection_modifyitems(config, items):
    """Skip benchmarks unless SOULDEW_BENCHMARK=1."""
    if os.environ.get("SOULDEW_BENCHMARK") in ("1", "true", "True"):
        return
    skip = pytest.mark.skip(reason="Set SOULDEW_BENCHMARK=1 to run benchmarks")
    for item in items:
        if "benchmark" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Keep logging configuration from leaking between tests."""
    yield
    structlog.reset_defaults()
