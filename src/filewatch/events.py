"""Minimal publish/subscribe helper for watcher events."""

import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List

from .models import EventName

logger = logging.getLogger(__name__)

Listener = Callable[..., None]


class EventEmitter:
    """
    Named-event publisher.

    Listeners run synchronously on the thread that emits. A listener that
    raises is logged and does not prevent delivery to the remaining ones.
    An ``error`` event with nobody listening is logged instead of dropped.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._listeners_lock = threading.Lock()

    def on(self, event: str, listener: Listener) -> Listener:
        """
        Subscribe to an event.

        Returns the listener so this can be used as a decorator helper.
        """
        with self._listeners_lock:
            self._listeners[event].append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Subscribe to the next occurrence of an event only."""
        def wrapper(*args):
            self.off(event, wrapper)
            listener(*args)

        wrapper.listener = listener
        return self.on(event, wrapper)

    def off(self, event: str, listener: Listener) -> bool:
        """
        Unsubscribe from an event.

        Returns:
            True if the listener was subscribed
        """
        with self._listeners_lock:
            listeners = self._listeners.get(event, [])
            for i, registered in enumerate(listeners):
                if registered is listener or getattr(registered, "listener", None) is listener:
                    listeners.pop(i)
                    return True
            return False

    def listener_count(self, event: str) -> int:
        with self._listeners_lock:
            return len(self._listeners.get(event, []))

    def emit(self, event: str, *args) -> bool:
        """
        Deliver an event to its listeners.

        Returns:
            True if at least one listener was called
        """
        with self._listeners_lock:
            listeners = list(self._listeners.get(event, []))

        if not listeners:
            if event == EventName.ERROR:
                error = args[0] if args else None
                logger.error(f"Unhandled watcher error: {error}")
            return False

        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception(f"Listener for '{event}' event failed")
        return True
