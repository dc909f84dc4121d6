"""JSON hand anchor records shared by the replay file and UDP bridge.

Schema (one object per line / datagram):
{
  "chirality": "left",
  "event": "updated",
  "origin_from_anchor": <transform>,
  "joints": {"wrist": <transform>, "thumbKnuckle": <transform>}
}

A transform is a 4x4 nested list (rows), 16 numbers in column-major order, or
{"position_m": [x, y, z], "quaternion_wxyz": [w, x, y, z]}.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import numpy as np

from ..control.hand import AnchorEvent, Chirality, HandAnchor, HandUpdate
from ..math3d.transforms import identity_transform, transform_from_position_quaternion

_EVENT_ALIASES = {
    "added": AnchorEvent.ADDED,
    "appeared": AnchorEvent.ADDED,
    "updated": AnchorEvent.UPDATED,
    "removed": AnchorEvent.REMOVED,
    "disappeared": AnchorEvent.REMOVED,
}


def _parse_transform(raw: Any) -> Optional[np.ndarray]:
    if isinstance(raw, dict):
        position = raw.get("position_m", raw.get("position"))
        quaternion = raw.get("quaternion_wxyz", raw.get("quaternion", [1.0, 0.0, 0.0, 0.0]))
        if position is None:
            return None
        try:
            p = np.asarray(position, dtype=np.float64).reshape(-1)
            q = np.asarray(quaternion, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError):
            return None
        if p.size != 3 or q.size != 4:
            return None
        if not np.isfinite(p).all() or not np.isfinite(q).all():
            return None
        return transform_from_position_quaternion(p, q)

    try:
        m = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if m.shape == (16,):
        # simd_float4x4 style: columns laid out one after another.
        m = m.reshape(4, 4).T
    if m.shape != (4, 4):
        return None
    if not np.isfinite(m).all():
        return None
    return m


def _parse_update_payload(payload: dict) -> Optional[HandUpdate]:
    try:
        chirality = Chirality(str(payload.get("chirality", "")).strip().lower())
    except ValueError:
        return None
    event = _EVENT_ALIASES.get(str(payload.get("event", "updated")).strip().lower())
    if event is None:
        return None

    raw_origin = payload.get("origin_from_anchor")
    if raw_origin is None:
        origin = identity_transform()
    else:
        origin = _parse_transform(raw_origin)
        if origin is None:
            return None

    raw_joints = payload.get("joints")
    joints: Optional[dict[str, np.ndarray]] = None
    if raw_joints is not None:
        if not isinstance(raw_joints, dict):
            return None
        joints = {}
        for name, raw_joint in raw_joints.items():
            if raw_joint is None:
                # Explicitly untracked joint.
                continue
            T = _parse_transform(raw_joint)
            if T is None:
                return None
            joints[str(name)] = T

    return HandUpdate(
        event=event,
        anchor=HandAnchor(chirality=chirality, origin_from_anchor=origin, joints=joints),
    )


def _parse_update_line(data: bytes | str) -> Optional[HandUpdate]:
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        payload = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return _parse_update_payload(payload)
