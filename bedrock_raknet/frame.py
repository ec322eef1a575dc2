"""Receive window tracking which datagram sequence numbers have arrived."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class Window:
    """Sliding window of received sequence numbers and when each arrived."""

    lowest: int = 0
    highest: int = 0
    queue: dict[int, float] = field(default_factory=dict)

    def add(self, index: int) -> bool:
        """Record index as received; False if it was already seen."""
        if self.seen(index):
            return False
        self.highest = max(index + 1, self.highest)
        self.queue[index] = time.monotonic()
        return True

    def seen(self, index: int) -> bool:
        return index < self.lowest or index in self.queue

    def shift(self) -> int:
        """Advance the low edge over received entries and return how many were dropped."""
        index = self.lowest
        shifted = 0
        while index < self.highest:
            index += 1
            if index not in self.queue:
                break
            del self.queue[index]
            shifted += 1
        self.lowest = index
        return shifted

    def missing(self, since: float) -> list[int]:
        """Sequence numbers that are gaps below an entry older than since seconds."""
        now = time.monotonic()
        found_old = False
        indices: list[int] = []
        index = self.highest - 1
        while index >= self.lowest:
            index -= 1
            i = index & 0xFFFFFFFF
            received_at = self.queue.get(i)
            if received_at is not None:
                if now - received_at >= since:
                    found_old = True
                continue
            if found_old:
                indices.append(i)
                self.queue.pop(i, None)
        self.shift()
        return indices

    def __len__(self) -> int:
        return self.highest - self.lowest