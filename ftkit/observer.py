"""Event subscription and notification."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Hashable


class Observer:
    """Calls the callbacks subscribed to an event when that event is notified."""

    def __init__(self) -> None:
        self._observers: defaultdict[Hashable, list[Callable[[], object]]] = defaultdict(list)

    def subscribe(self, event: Hashable, callback: Callable[[], object]) -> None:
        """Register ``callback`` to run whenever ``event`` is notified."""
        self._observers[event].append(callback)

    def notify(self, event: Hashable) -> None:
        """Run every callback subscribed to ``event``, in subscription order."""
        for callback in self._observers.get(event, ()):
            callback()