"""
SoulDew: a small synchronous event bus.

Components subscribe to named events (or to every event with "*"),
emit events with arbitrary arguments, and may cancel an emission
from inside a listener.
"""

from souldew.config import BusSettings
from souldew.events import EventBus, EventBusError, InvalidArgument, WILDCARD

__version__ = "0.1.0"

__all__ = [
    "BusSettings",
    "EventBus",
    "EventBusError",
    "InvalidArgument",
    "WILDCARD",
    "__version__",
]
