"""
Event bus for synchronous, in-process pub/sub.

Provides:
- Named subscriptions and a wildcard ("*") subscription
- One-shot listeners
- Subscribe/unsubscribe while an event is being dispatched
- Cooperative cancellation scoped to the current emission
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from souldew.config import BusSettings
from souldew.logging_config import get_logger

logger = get_logger(__name__)

WILDCARD = "*"

# Listener callbacks take the emitted arguments; return values are ignored.
ListenerCallback = Callable[..., Any]


# =============================================================================
# Errors
# =============================================================================


class EventBusError(Exception):
    """Base class for event bus errors."""


class InvalidArgument(EventBusError, TypeError, ValueError):
    """Raised when an event name or listener is malformed."""


# =============================================================================
# Registrations
# =============================================================================


@dataclass(eq=False)
class Listener:
    """
    A single registration of a callback.

    Attributes:
        callback: Called with the emitted arguments
        once: Remove after the first invocation
        active: Cleared when the registration is removed or consumed
    """

    callback: ListenerCallback
    once: bool = False
    active: bool = field(default=True, repr=False)

    def matches(self, callback: ListenerCallback) -> bool:
        # Equality rather than identity so bound methods match.
        return self.callback == callback


@dataclass
class _Dispatch:
    """Cancellation scope of one emit call."""

    event: str
    cancelled: bool = False


def _validate_event(event: Any) -> None:
    if not isinstance(event, str) or not event:
        raise InvalidArgument("event must be a non-empty string")


def _validate_callback(callback: Any) -> None:
    if not callable(callback):
        raise InvalidArgument("listener must be callable")


def _callback_name(callback: ListenerCallback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


# =============================================================================
# Event Bus
# =============================================================================


class EventBus:
    """
    Synchronous event bus.

    Named listeners run in subscription order, then wildcard listeners
    run in subscription order. Wildcard listeners receive the event name
    as their first argument.

    Any listener may call ``cancel()`` to stop the rest of the current
    emission, in which case ``emit`` returns False. Listener exceptions
    are not caught and abort the emission.

    Example:
        bus = EventBus()

        def on_saved(user_id):
            ...

        bus.subscribe("user.saved", on_saved)
        bus.subscribe("*", lambda event, *args: print(event, args))

        if not bus.emit("user.saved", 42):
            print("cancelled")
    """

    def __init__(self, settings: BusSettings | None = None):
        """
        Initialize event bus.

        Args:
            settings: Bus settings, defaults are used when omitted
        """
        self.settings = settings or BusSettings()
        self._listeners: dict[str, list[Listener]] = {}
        self._wildcard: list[Listener] = []
        self._dispatches: list[_Dispatch] = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        event: str,
        callback: ListenerCallback,
        once: bool = False,
    ) -> Callable[[], None]:
        """
        Subscribe a callback to an event.

        Every call creates an independent registration, so subscribing the
        same callback twice makes it run twice per emission.

        Args:
            event: Event name, or "*" for every event
            callback: Called with the emitted arguments
            once: Remove after the first invocation

        Returns:
            Function removing this registration only

        Raises:
            InvalidArgument: If event is not a non-empty string or
                callback is not callable
        """
        _validate_event(event)
        _validate_callback(callback)

        listener = Listener(callback=callback, once=bool(once))
        with self._lock:
            if event == WILDCARD:
                self._wildcard.append(listener)
            else:
                self._listeners.setdefault(event, []).append(listener)

        logger.debug(
            "event_subscribed",
            event_name=event,
            listener=_callback_name(callback),
            once=listener.once,
        )

        def unsubscribe() -> None:
            self._discard(event, listener)

        return unsubscribe

    def once(self, event: str, callback: ListenerCallback) -> Callable[[], None]:
        """Subscribe a callback that is removed after its first invocation."""
        return self.subscribe(event, callback, once=True)

    def unsubscribe(self, event: str, callback: ListenerCallback) -> None:
        """
        Remove every registration of a callback for an event.

        Does nothing if the callback is not subscribed.

        Args:
            event: Event name, or "*" for the wildcard listeners
            callback: Callback to remove

        Raises:
            InvalidArgument: If event is not a non-empty string or
                callback is not callable
        """
        _validate_event(event)
        _validate_callback(callback)

        with self._lock:
            registrations = self._registrations(event)
            removed = [lst for lst in registrations if lst.matches(callback)]
            if not removed:
                return
            for listener in removed:
                listener.active = False
            self._store(event, [lst for lst in registrations if lst.active])

        logger.debug(
            "event_unsubscribed",
            event_name=event,
            listener=_callback_name(callback),
            removed=len(removed),
        )

    on = subscribe
    off = unsubscribe

    def clear_all_listeners(self) -> None:
        """Remove every named and wildcard registration."""
        with self._lock:
            count = self.listener_count()
            for registrations in self._listeners.values():
                for listener in registrations:
                    listener.active = False
            for listener in self._wildcard:
                listener.active = False
            self._listeners.clear()
            self._wildcard = []

        logger.debug("event_listeners_cleared", removed=count)

    def _registrations(self, event: str) -> list[Listener]:
        if event == WILDCARD:
            return self._wildcard
        return self._listeners.get(event, [])

    def _store(self, event: str, registrations: list[Listener]) -> None:
        """Replace the registrations for an event, pruning empty entries."""
        if event == WILDCARD:
            self._wildcard = registrations
        elif registrations:
            self._listeners[event] = registrations
        else:
            self._listeners.pop(event, None)

    def _discard(self, event: str, listener: Listener) -> None:
        with self._lock:
            if not listener.active:
                return
            listener.active = False
            self._store(
                event,
                [lst for lst in self._registrations(event) if lst is not listener],
            )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def emit(self, event: str, *args: Any) -> bool:
        """
        Emit an event synchronously.

        Args:
            event: Event name
            *args: Passed unchanged to every listener

        Returns:
            False if a listener cancelled the emission, True otherwise

        Raises:
            InvalidArgument: If event is not a non-empty string
        """
        _validate_event(event)

        with self._lock:
            dispatch = _Dispatch(event)
            self._dispatches.append(dispatch)
            try:
                return self._dispatch(dispatch, args)
            finally:
                self._dispatches.pop()

    def cancel(self) -> None:
        """
        Cancel the emission currently being dispatched.

        Only meaningful from inside a listener. When emissions are nested,
        only the innermost one is cancelled.
        """
        with self._lock:
            if not self._dispatches:
                logger.debug("event_cancel_ignored", reason="no_active_dispatch")
                return
            self._dispatches[-1].cancelled = True

    def _dispatch(self, dispatch: _Dispatch, args: tuple[Any, ...]) -> bool:
        # Both phases iterate registrations as they stood when emit began.
        named = tuple(self._listeners.get(dispatch.event, ()))
        wildcard = tuple(self._wildcard)

        if not named and not wildcard:
            if self.settings.warn_on_no_listeners:
                logger.warning("event_has_no_listeners", event_name=dispatch.event)
            return True

        if named:
            self._call_listeners(dispatch, dispatch.event, named, args)
            if dispatch.cancelled:
                logger.debug("event_cancelled", event_name=dispatch.event, phase="named")
                return False

        if wildcard:
            self._call_listeners(dispatch, WILDCARD, wildcard, (dispatch.event, *args))
            if dispatch.cancelled:
                logger.debug("event_cancelled", event_name=dispatch.event, phase="wildcard")
                return False

        return True

    def _call_listeners(
        self,
        dispatch: _Dispatch,
        key: str,
        registrations: tuple[Listener, ...],
        args: tuple[Any, ...],
    ) -> None:
        # Listeners removed before their turn are skipped.
        for listener in registrations:
            if not listener.active:
                continue
            if listener.once:
                self._discard(key, listener)

            try:
                listener.callback(*args)
            except Exception:
                logger.debug(
                    "event_listener_failed",
                    event_name=dispatch.event,
                    listener=_callback_name(listener.callback),
                )
                raise

            if dispatch.cancelled:
                break

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def is_dispatching(self) -> bool:
        """Whether an emission is in progress on this bus."""
        return bool(self._dispatches)

    def listener_count(self, event: str | None = None) -> int:
        """
        Count registrations.

        Args:
            event: Event name, "*" for wildcard listeners, or None for all

        Returns:
            Number of registrations
        """
        with self._lock:
            if event is None:
                named = sum(len(regs) for regs in self._listeners.values())
                return named + len(self._wildcard)
            return len(self._registrations(event))

    def has_listeners(self, event: str) -> bool:
        """Whether emitting this event would reach any listener."""
        _validate_event(event)
        with self._lock:
            return bool(self._wildcard) or event in self._listeners

    def event_names(self) -> list[str]:
        """Named events that currently have listeners, in subscription order."""
        with self._lock:
            return list(self._listeners)

    def get_stats(self) -> dict[str, Any]:
        """Get event bus statistics."""
        with self._lock:
            named = sum(len(regs) for regs in self._listeners.values())
            return {
                "events": len(self._listeners),
                "named_listeners": named,
                "wildcard_listeners": len(self._wildcard),
                "total_listeners": named + len(self._wildcard),
                "dispatch_depth": len(self._dispatches),
            }


# =============================================================================
# Global Instance
# =============================================================================

_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus(BusSettings.from_env())
    return _event_bus


def reset_event_bus() -> None:
    """Clear and drop the global event bus."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear_all_listeners()
    _event_bus = None


# =============================================================================
# Convenience Functions
# =============================================================================


def subscribe(
    event: str,
    callback: ListenerCallback | None = None,
    once: bool = False,
):
    """
    Subscribe to an event on the global bus (can be used as decorator).

    Usage:
        @subscribe("user.saved")
        def on_saved(user_id):
            ...

        # Or:
        unsubscribe_handle = subscribe("*", audit)
    """
    _validate_event(event)
    bus = get_event_bus()

    if callback is not None:
        return bus.subscribe(event, callback, once)

    def decorator(fn: ListenerCallback) -> ListenerCallback:
        bus.subscribe(event, fn, once)
        return fn

    return decorator


def unsubscribe(event: str, callback: ListenerCallback) -> None:
    """Unsubscribe a callback from the global bus."""
    get_event_bus().unsubscribe(event, callback)


def emit(event: str, *args: Any) -> bool:
    """Emit an event on the global bus."""
    return get_event_bus().emit(event, *args)


def cancel() -> None:
    """Cancel the emission in progress on the global bus."""
    get_event_bus().cancel()
