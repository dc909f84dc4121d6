"""Minimum-delta gate for outgoing rotation notifications."""

from __future__ import annotations


class ChangeGate:
    def __init__(self, min_change: float = 0.005):
        if min_change < 0.0:
            raise ValueError(f"min_change must be >= 0, got {min_change}")
        self.min_change = float(min_change)

    def should_emit(self, value: float, last_emitted: float, tracking: bool) -> bool:
        return bool(tracking) and abs(float(value) - float(last_emitted)) > self.min_change
