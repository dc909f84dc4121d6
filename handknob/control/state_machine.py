"""Tracking lifecycle + rotation pipeline for one hand."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import KnobConfig
from .angle import anchor_heading_deg
from .change_gate import ChangeGate
from .emitter import RotationEmitter
from .hand import AnchorEvent, Chirality, HandUpdate
from .rotation_mapper import RotationMapper
from .smoother import TemporalSmoother

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    is_tracking: bool
    previous_angle: Optional[float]
    last_emitted_value: float
    window: tuple[float, ...]


@dataclass(slots=True)
class ControllerState:
    """Mutable pipeline state, owned by the consumer.

    Invariant: when is_tracking is False the window is empty and
    previous_angle is None.
    """

    window: TemporalSmoother
    is_tracking: bool = False
    previous_angle: Optional[float] = None
    last_emitted_value: float = 0.0

    def reset(self) -> None:
        self.is_tracking = False
        self.previous_angle = None
        self.window.reset()
        self.last_emitted_value = 0.0

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            is_tracking=self.is_tracking,
            previous_angle=self.previous_angle,
            last_emitted_value=self.last_emitted_value,
            window=self.window.values,
        )


class TrackingStateMachine:
    """Idle <-> Tracking driven by hand anchor updates.

    handle() returns the value emitted for the update, or None.
    """

    def __init__(self, config: KnobConfig | None = None, emitter: RotationEmitter | None = None):
        self.config = config or KnobConfig()
        self.tracked_chirality = Chirality(self.config.tracked_chirality)
        self.mapper = RotationMapper(self.config.start_angle, self.config.end_angle)
        self.gate = ChangeGate(self.config.min_change_threshold)
        self.emitter = emitter or RotationEmitter()
        self.state = ControllerState(window=TemporalSmoother(self.config.smoothing_window))

    def reset(self) -> None:
        self.state.reset()

    def snapshot(self) -> StateSnapshot:
        return self.state.snapshot()

    def handle(self, update: HandUpdate) -> Optional[float]:
        if update.anchor.chirality != self.tracked_chirality:
            return None

        if update.event == AnchorEvent.ADDED:
            self.state.reset()
            self.state.is_tracking = True
            logger.info("[KNOB] %s hand appeared", self.tracked_chirality.value)
            return self._emit(0.0)

        if update.event == AnchorEvent.REMOVED:
            self.state.reset()
            logger.info("[KNOB] %s hand removed", self.tracked_chirality.value)
            return self._emit(0.0)

        return self._process(update)

    def _process(self, update: HandUpdate) -> Optional[float]:
        angle = anchor_heading_deg(update.anchor)
        if angle is None:
            # Occluded joint: transient skip, keep prior state.
            return None

        state = self.state
        state.is_tracking = True
        raw = self.mapper.map(angle)
        smoothed = state.window.push(raw)

        should_emit = self.gate.should_emit(smoothed, state.last_emitted_value, state.is_tracking)
        if should_emit:
            state.last_emitted_value = smoothed
        # Set before notifying: a subscriber may call stop() and reset state.
        state.previous_angle = angle
        if should_emit:
            return self._emit(smoothed)
        return None

    def _emit(self, value: float) -> float:
        logger.debug("[KNOB] rotation=%.4f", value)
        self.emitter.emit(value)
        return value
