"""Heading angle -> normalized knob rotation."""

from __future__ import annotations


def clamp01(value: float) -> float:
    return float(max(0.0, min(1.0, value)))


def rotation_to_degrees(value: float) -> float:
    """Knob rotation in degrees for a normalized value (full turn at 1.0)."""
    return clamp01(value) * 360.0


class RotationMapper:
    """Linear active range between two reference angles, saturating outside.

    start_angle maps to 0.0 and end_angle maps to 1.0. Angles just past the
    open end (up to 180) saturate low; everything else (below end_angle and
    the whole [180, 360) hemisphere) saturates high.
    """

    def __init__(self, start_angle: float = 90.0, end_angle: float = 32.0):
        self.start_angle = float(start_angle)
        self.end_angle = float(end_angle)
        if self.start_angle <= self.end_angle:
            raise ValueError(
                f"start_angle must be > end_angle, got {self.start_angle} <= {self.end_angle}"
            )
        self.range = self.start_angle - self.end_angle

    def map(self, angle_deg: float) -> float:
        a = float(angle_deg)
        if self.end_angle <= a <= self.start_angle:
            return clamp01((self.start_angle - a) / self.range)
        if self.start_angle < a < 180.0:
            return 0.0
        return 1.0
