"""Ordered queue for reliable ordered packets."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PacketQueue:
    """Holds buffers by order index and releases them in order."""

    lowest: int = 0
    highest: int = 0
    queue: dict[int, bytes] = field(default_factory=dict)

    def put(self, index: int, buffer: bytes) -> bool:
        """Store buffer at index; False if the index is already occupied."""
        if index < self.lowest:
            self.lowest = index
        if index in self.queue:
            return False
        if index >= self.highest:
            self.highest = index + 1
        self.queue[index] = buffer
        return True

    def fetch(self) -> list[bytes]:
        """Take out every buffer from the low edge up to the first gap."""
        packets: list[bytes] = []
        index = self.lowest
        while index < self.highest and index in self.queue:
            packets.append(self.queue.pop(index))
            index += 1
        self.lowest = index
        return packets

    def window_size(self) -> int:
        return self.highest - self.lowest