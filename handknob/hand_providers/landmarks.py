"""Per-frame hand detections -> anchor lifecycle updates.

Camera trackers report the set of hands visible in each frame; the knob
pipeline expects ARKit-style added / updated / removed anchor events. This
module bridges the two without depending on any CV library.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import numpy as np

from ..control.hand import AnchorEvent, Chirality, HandAnchor, HandUpdate, bare_anchor
from ..math3d.transforms import identity_transform, make_transform

# MediaPipe Hands landmark index -> skeleton joint name.
HAND_JOINT_NAMES = (
    "wrist",
    "thumbKnuckle",
    "thumbIntermediateBase",
    "thumbIntermediateTip",
    "thumbTip",
    "indexFingerKnuckle",
    "indexFingerIntermediateBase",
    "indexFingerIntermediateTip",
    "indexFingerTip",
    "middleFingerKnuckle",
    "middleFingerIntermediateBase",
    "middleFingerIntermediateTip",
    "middleFingerTip",
    "ringFingerKnuckle",
    "ringFingerIntermediateBase",
    "ringFingerIntermediateTip",
    "ringFingerTip",
    "littleFingerKnuckle",
    "littleFingerIntermediateBase",
    "littleFingerIntermediateTip",
    "littleFingerTip",
)

# Convert from image basis (x right, y down) to app basis (x right, y up).
_CV_TO_APP = np.diag(np.array([1.0, -1.0, 1.0], dtype=np.float64))
_IDENTITY_ROT = np.eye(3, dtype=np.float64)


def _point_xyz(p: Any) -> np.ndarray:
    if hasattr(p, "x"):
        return np.array([float(p.x), float(p.y), float(p.z)], dtype=np.float64)
    return np.asarray(p, dtype=np.float64).reshape(3)


def landmarks_to_anchor(points: Sequence[Any], chirality: Chirality) -> HandAnchor:
    """Build an anchor from 21 landmarks (objects with x/y/z or 3-sequences).

    Joints with non-finite coordinates are left out so they read as
    unresolvable downstream.
    """
    joints: dict[str, np.ndarray] = {}
    for name, p in zip(HAND_JOINT_NAMES, points):
        xyz = _CV_TO_APP @ _point_xyz(p)
        if not np.isfinite(xyz).all():
            continue
        joints[name] = make_transform(_IDENTITY_ROT, xyz)
    return HandAnchor(chirality=chirality, origin_from_anchor=identity_transform(), joints=joints)


def resolve_chirality(label: str, mirrored: bool) -> Optional[Chirality]:
    """Map a handedness label to the user's hand.

    Handedness classifiers assume a mirrored (selfie) image; on an unmirrored
    frame the label is swapped.
    """
    s = str(label).strip().lower()
    if s not in {"left", "right"}:
        return None
    if not mirrored:
        s = "right" if s == "left" else "left"
    return Chirality(s)


class HandPresenceTracker:
    """Turns per-frame visible hands into added/updated/removed updates."""

    def __init__(self):
        self._present: set[Chirality] = set()

    @property
    def present(self) -> frozenset[Chirality]:
        return frozenset(self._present)

    def step(self, anchors: Mapping[Chirality, HandAnchor]) -> list[HandUpdate]:
        updates: list[HandUpdate] = []
        for chirality in Chirality:
            anchor = anchors.get(chirality)
            if anchor is None:
                if chirality in self._present:
                    self._present.discard(chirality)
                    updates.append(HandUpdate(AnchorEvent.REMOVED, bare_anchor(chirality)))
                continue
            if chirality not in self._present:
                self._present.add(chirality)
                updates.append(HandUpdate(AnchorEvent.ADDED, anchor))
            updates.append(HandUpdate(AnchorEvent.UPDATED, anchor))
        return updates

    def clear(self) -> list[HandUpdate]:
        """Removal updates for every hand still present."""
        return self.step({})
