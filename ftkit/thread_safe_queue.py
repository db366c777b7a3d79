"""A double-ended queue guarded by a lock."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class EmptyQueueError(RuntimeError):
    """Raised when popping from an empty queue."""


class ThreadSafeQueue(Generic[T]):
    """Deque whose operations may be called from several threads at once."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queue: deque[T] = deque()

    def push_back(self, item: T) -> None:
        """Append ``item`` at the back."""
        with self._lock:
            self._queue.append(item)

    def push_front(self, item: T) -> None:
        """Insert ``item`` at the front."""
        with self._lock:
            self._queue.appendleft(item)

    def pop_back(self) -> T:
        """Remove and return the back item."""
        with self._lock:
            if not self._queue:
                raise EmptyQueueError("ThreadSafeQueue: pop_back from empty queue")
            return self._queue.pop()

    def pop_front(self) -> T:
        """Remove and return the front item."""
        with self._lock:
            if not self._queue:
                raise EmptyQueueError("ThreadSafeQueue: pop_front from empty queue")
            return self._queue.popleft()

    def empty(self) -> bool:
        """True when the queue holds nothing."""
        with self._lock:
            return not self._queue

    def clear(self) -> None:
        """Remove every item."""
        with self._lock:
            self._queue.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)