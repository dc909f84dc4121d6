"""Heading angle extraction from wrist and thumb knuckle joints."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..math3d.coords import vec_to_heading_deg
from ..math3d.transforms import compose, translation_of
from .hand import JOINT_THUMB_KNUCKLE, JOINT_WRIST, HandAnchor


def joint_position(anchor: HandAnchor, joint_name: str) -> Optional[np.ndarray]:
    """World-space joint position, or None when the joint is not resolvable."""
    if anchor.joints is None:
        return None
    anchor_from_joint = anchor.joints.get(joint_name)
    if anchor_from_joint is None:
        return None
    return translation_of(compose(anchor.origin_from_anchor, anchor_from_joint))


def heading_angle_deg(wrist: np.ndarray, thumb: np.ndarray) -> float:
    """Angle of the wrist -> thumb vector in the x/y plane, in [0, 360)."""
    v = np.asarray(thumb, dtype=np.float64) - np.asarray(wrist, dtype=np.float64)
    return vec_to_heading_deg(v)


def anchor_heading_deg(anchor: HandAnchor) -> Optional[float]:
    wrist = joint_position(anchor, JOINT_WRIST)
    thumb = joint_position(anchor, JOINT_THUMB_KNUCKLE)
    if wrist is None or thumb is None:
        return None
    return heading_angle_deg(wrist, thumb)
