"""Hand anchor data structures for single-hand tracking."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

import numpy as np

from ..math3d.transforms import identity_transform

JOINT_WRIST = "wrist"
JOINT_THUMB_KNUCKLE = "thumbKnuckle"


class Chirality(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class AnchorEvent(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(slots=True)
class HandAnchor:
    """One tracked hand sample at one instant.

    origin_from_anchor:
      4x4 transform of the anchor in the shared origin space.
    joints:
      Joint name -> 4x4 anchor-local transform. None when the skeleton is not
      available for this sample.
    """

    chirality: Chirality
    origin_from_anchor: np.ndarray
    joints: Optional[Mapping[str, np.ndarray]] = None


@dataclass(slots=True)
class HandUpdate:
    event: AnchorEvent
    anchor: HandAnchor


def bare_anchor(chirality: Chirality) -> HandAnchor:
    """Anchor without skeleton, used for lifecycle events."""
    return HandAnchor(chirality=chirality, origin_from_anchor=identity_transform())
