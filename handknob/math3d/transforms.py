"""Homogeneous 4x4 rigid transforms (rotation + translation)."""

from __future__ import annotations

import numpy as np

from .quaternion import q_to_rotmat


def identity_transform() -> np.ndarray:
    return np.eye(4, dtype=np.float64)


def make_transform(rotation: np.ndarray, translation: np.ndarray) -> np.ndarray:
    """Build a 4x4 transform from a 3x3 rotation and a 3-vector translation."""
    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    T[:3, 3] = np.asarray(translation, dtype=np.float64).reshape(3)
    return T


def transform_from_position_quaternion(position: np.ndarray, quaternion: np.ndarray) -> np.ndarray:
    return make_transform(q_to_rotmat(quaternion), position)


def translation_of(T: np.ndarray) -> np.ndarray:
    """Translation column of a 4x4 transform, i.e. the frame origin position."""
    return np.asarray(T, dtype=np.float64)[:3, 3].copy()


def compose(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """a_from_c = a_from_b @ b_from_c."""
    return np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)
