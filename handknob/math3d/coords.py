"""Planar heading helpers in degrees."""

from __future__ import annotations

import math

import numpy as np


def wrap_deg_360(angle_deg: float) -> float:
    """Fold an angle produced by atan2 into [0, 360)."""
    a = float(angle_deg)
    if a < 0.0:
        a += 360.0
    return a


def vec_to_heading_deg(v: np.ndarray) -> float:
    """
    Heading convention (single source of truth):
    - only the horizontal (x) and vertical (y) components are used
    - 0 = straight up (+y), 90 = right (+x), increasing clockwise

    For vector v in (x right, y up, z any):
      heading: atan2(x, y) in [0, 360)
    """
    x, y = float(v[0]), float(v[1])
    return wrap_deg_360(math.degrees(math.atan2(x, y)))
