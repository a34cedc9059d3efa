"""
Event dispatch module.

Provides a synchronous pub/sub event bus for decoupled communication
between components.
"""

from souldew.events.bus import (
    WILDCARD,
    EventBus,
    EventBusError,
    InvalidArgument,
    Listener,
    ListenerCallback,
    cancel,
    emit,
    get_event_bus,
    reset_event_bus,
    subscribe,
    unsubscribe,
)

__all__ = [
    "WILDCARD",
    "EventBus",
    "EventBusError",
    "InvalidArgument",
    "Listener",
    "ListenerCallback",
    "cancel",
    "emit",
    "get_event_bus",
    "reset_event_bus",
    "subscribe",
    "unsubscribe",
]
