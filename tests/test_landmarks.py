from types import SimpleNamespace

import numpy as np

from handknob.control.angle import anchor_heading_deg
from handknob.control.hand import AnchorEvent, Chirality, bare_anchor
from handknob.hand_providers.landmarks import (
    HAND_JOINT_NAMES,
    HandPresenceTracker,
    landmarks_to_anchor,
    resolve_chirality,
)


def _landmarks(thumb_xy=(0.03, -0.03)):
    points = [SimpleNamespace(x=0.0, y=0.0, z=0.0) for _ in HAND_JOINT_NAMES]
    points[1] = SimpleNamespace(x=thumb_xy[0], y=thumb_xy[1], z=0.01)
    return points


def test_landmarks_to_anchor_flips_image_y_up():
    anchor = landmarks_to_anchor(_landmarks(), Chirality.LEFT)
    assert set(anchor.joints) == set(HAND_JOINT_NAMES)
    np.testing.assert_allclose(anchor.joints["thumbKnuckle"][:3, 3], [0.03, 0.03, 0.01])
    # Thumb up and to the right of the wrist.
    assert abs(anchor_heading_deg(anchor) - 45.0) < 1e-9


def test_landmarks_to_anchor_skips_non_finite_points():
    points = _landmarks()
    points[1] = (float("nan"), 0.0, 0.0)
    anchor = landmarks_to_anchor(points, Chirality.LEFT)
    assert "thumbKnuckle" not in anchor.joints
    assert anchor_heading_deg(anchor) is None


def test_resolve_chirality():
    assert resolve_chirality("Left", mirrored=True) == Chirality.LEFT
    assert resolve_chirality("Left", mirrored=False) == Chirality.RIGHT
    assert resolve_chirality("unknown", mirrored=True) is None


def test_presence_tracker_emits_lifecycle_events():
    tracker = HandPresenceTracker()
    left = bare_anchor(Chirality.LEFT)

    first = tracker.step({Chirality.LEFT: left})
    assert [u.event for u in first] == [AnchorEvent.ADDED, AnchorEvent.UPDATED]

    second = tracker.step({Chirality.LEFT: left})
    assert [u.event for u in second] == [AnchorEvent.UPDATED]

    gone = tracker.step({})
    assert [(u.event, u.anchor.chirality) for u in gone] == [
        (AnchorEvent.REMOVED, Chirality.LEFT)
    ]
    assert tracker.present == frozenset()


def test_presence_tracker_clear_removes_all_hands():
    tracker = HandPresenceTracker()
    tracker.step(
        {
            Chirality.LEFT: bare_anchor(Chirality.LEFT),
            Chirality.RIGHT: bare_anchor(Chirality.RIGHT),
        }
    )
    removed = tracker.clear()
    assert {u.anchor.chirality for u in removed} == {Chirality.LEFT, Chirality.RIGHT}
    assert all(u.event == AnchorEvent.REMOVED for u in removed)
