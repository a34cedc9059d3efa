"""Benchmark fixtures and configuration."""
import logging

import pytest
import structlog

from souldew.config import BusSettings
from souldew.events import WILDCARD, EventBus


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep per-subscription debug logs out of the timings."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))


@pytest.fixture
def busy_bus():
    """Bus with 100 named listeners on one event and 10 wildcard listeners."""
    bus = EventBus(BusSettings(warn_on_no_listeners=False))
    sink = []
    for _ in range(100):
        bus.subscribe("tick", sink.append)
    for _ in range(10):
        bus.subscribe(WILDCARD, lambda event, *args: None)
    return bus
