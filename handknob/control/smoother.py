"""Triangular (linearly recency-weighted) moving average."""

from __future__ import annotations

from collections import deque


class TemporalSmoother:
    def __init__(self, capacity: int = 5):
        if int(capacity) < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self._window: deque[float] = deque(maxlen=self.capacity)

    def push(self, value: float) -> float:
        # deque(maxlen) evicts the oldest entry on overflow.
        self._window.append(float(value))

        weighted_sum = 0.0
        total_weight = 0.0
        for i, v in enumerate(self._window, start=1):
            weighted_sum += v * i
            total_weight += i
        return weighted_sum / total_weight

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(self._window)

    def reset(self) -> None:
        self._window.clear()

    def __len__(self) -> int:
        return len(self._window)
