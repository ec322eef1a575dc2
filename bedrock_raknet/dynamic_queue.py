"""Thread-safe FIFO queue whose nominal capacity grows by doubling."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class DynamicQueue(Generic[T]):
    """FIFO queue with a blocking recv; capacity doubles up to max_capacity."""

    def __init__(self, initial_capacity: int, max_capacity: int) -> None:
        self._buffer: deque[T] = deque()
        self._capacity = initial_capacity
        self.max_capacity = max_capacity
        self._ready = threading.Condition()

    @property
    def capacity(self) -> int:
        with self._ready:
            return self._capacity

    def send(self, value: T) -> None:
        """Append value, growing capacity when the queue is full."""
        with self._ready:
            if len(self._buffer) == self._capacity and self._capacity < self.max_capacity:
                self._capacity = min(self._capacity * 2, self.max_capacity)
            self._buffer.append(value)
            self._ready.notify()

    def recv(self) -> T:
        """Remove and return the oldest value, waiting until one is available."""
        with self._ready:
            self._ready.wait_for(lambda: self._buffer)
            return self._buffer.popleft()

    def __len__(self) -> int:
        with self._ready:
            return len(self._buffer)