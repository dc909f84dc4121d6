"""Bounded hand update channel between a provider and the consumer."""

from __future__ import annotations

import queue
import threading
from typing import Optional

from .hand import HandUpdate


class UpdateChannel:
    """FIFO with blocking backpressure.

    Producers block in put() while the channel is full; the consumer polls
    get() with a bounded wait so it can observe cancellation between updates.
    """

    def __init__(self, capacity: int = 256):
        if int(capacity) < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._queue: queue.Queue[HandUpdate] = queue.Queue(maxsize=self.capacity)

    def put(self, update: HandUpdate, timeout: Optional[float] = None) -> bool:
        try:
            self._queue.put(update, block=True, timeout=timeout)
        except queue.Full:
            return False
        return True

    def get(self, timeout: Optional[float] = None) -> Optional[HandUpdate]:
        try:
            return self._queue.get(block=True, timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return dropped
            dropped += 1

    def __len__(self) -> int:
        return self._queue.qsize()

    def publish(self, update: HandUpdate, cancel: threading.Event, poll_s: float = 0.1) -> bool:
        """Block until the update is queued or cancel is set."""
        while not cancel.is_set():
            if self.put(update, timeout=poll_s):
                return True
        return False
