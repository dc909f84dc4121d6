"""Explicit subscription list for rotation notifications."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

RotationCallback = Callable[[float], None]


class RotationEmitter:
    """Synchronous fan-out to subscribers, in subscription order.

    Subscribers run on the consumer thread and must return quickly.
    """

    def __init__(self):
        self._subscribers: list[RotationCallback] = []

    def subscribe(self, callback: RotationCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def emit(self, value: float) -> None:
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception("[KNOB] rotation subscriber %r failed", callback)

    def clear(self) -> None:
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)
