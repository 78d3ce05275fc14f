from __future__ import annotations

from enum import Enum

import numpy as np


class FrameChoice(str, Enum):
    LAB = "lab"
    BODY = "body"


def to_frame(
    vectors_lab: np.ndarray,
    frame: FrameChoice,
    rotation: np.ndarray,
    origin: np.ndarray | None = None,
) -> np.ndarray:
    """Express lab-frame vectors (shape ``(3,)`` or ``(K, 3)``) in ``frame``.

    With ``origin`` the vectors are treated as points and shifted first;
    without it they are free vectors such as forces or torques.
    """
    vectors = np.asarray(vectors_lab, dtype=float)
    if frame == FrameChoice.LAB:
        return vectors.copy()
    if frame == FrameChoice.BODY:
        if origin is not None:
            vectors = vectors - np.asarray(origin, dtype=float)
        # Row vectors: v @ R == (R.T @ v.T).T
        return vectors @ np.asarray(rotation, dtype=float)
    raise ValueError(f"Unsupported frame: {frame}")


def from_frame(
    vectors_frame: np.ndarray,
    frame: FrameChoice,
    rotation: np.ndarray,
    origin: np.ndarray | None = None,
) -> np.ndarray:
    vectors = np.asarray(vectors_frame, dtype=float)
    if frame == FrameChoice.LAB:
        return vectors.copy()
    if frame == FrameChoice.BODY:
        lab = vectors @ np.asarray(rotation, dtype=float).T
        if origin is not None:
            lab = lab + np.asarray(origin, dtype=float)
        return lab
    raise ValueError(f"Unsupported frame: {frame}")
