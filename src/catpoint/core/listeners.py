"""
Synchronous observer registry used by the alarm coordinator.

Listeners are plain objects implementing `StatusListener`. Dispatch iterates
a snapshot of the registrations, so a listener may unregister itself (or
others) while being notified.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from .contracts import StatusListener

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Set-like collection of status listeners with fan-out publishing."""

    def __init__(self) -> None:
        # keyed by identity so each listener is registered once
        self._listeners: dict[int, StatusListener] = {}

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener: object) -> bool:
        return id(listener) in self._listeners

    def __iter__(self) -> Iterator[StatusListener]:
        return iter(list(self._listeners.values()))

    def add(self, listener: StatusListener) -> None:
        """Register a listener; adding it twice is a no-op."""
        if id(listener) in self._listeners:
            return
        self._listeners[id(listener)] = listener
        logger.debug("Registered status listener %s", listener)

    def remove(self, listener: StatusListener) -> None:
        """Unregister a listener; removing an unknown listener is a no-op."""
        if self._listeners.pop(id(listener), None) is not None:
            logger.debug("Removed status listener %s", listener)

    def publish(self, event: str, *args: Any) -> None:
        """Invoke ``event`` on every registered listener."""
        listeners = list(self._listeners.values())
        logger.debug("Dispatching %s to %d listeners", event, len(listeners))
        for listener in listeners:
            handler = getattr(listener, event, None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception:
                logger.exception("Status listener %s failed on %s", listener, event)


__all__ = ["ListenerRegistry"]
