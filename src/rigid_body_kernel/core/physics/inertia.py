"""Inertia tensors of point-mass clusters."""

from __future__ import annotations

import numpy as np


def point_mass_inertia(offsets: np.ndarray, masses: np.ndarray) -> np.ndarray:
    """Return the inertia tensor of point masses about the origin of ``offsets``.

    Parameters
    ----------
    offsets : (K, 3)
        Point positions relative to the reference point (normally the CoM).
    masses : (K,)
        Point masses.
    """
    r = np.asarray(offsets, dtype=np.float64)
    m = np.asarray(masses, dtype=np.float64)
    if r.ndim != 2 or r.shape[1] != 3:
        raise ValueError("offsets must have shape (K, 3)")
    if m.ndim != 1 or m.shape[0] != r.shape[0]:
        raise ValueError("masses must have shape (K,)")
    r2 = np.sum(r * r, axis=1)
    eye = np.eye(3, dtype=np.float64)
    return np.sum(
        m[:, np.newaxis, np.newaxis] * (r2[:, None, None] * eye - r[:, :, None] * r[:, None, :]),
        axis=0,
    )


def principal_axes(inertia: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Diagonalize a symmetric inertia tensor.

    Returns the ascending principal moments and a proper rotation whose
    columns are the matching principal axes, so that
    ``inertia == frame @ np.diag(moments) @ frame.T``.
    """
    tensor = np.asarray(inertia, dtype=np.float64).reshape(3, 3)
    tensor = 0.5 * (tensor + tensor.T)
    moments, frame = np.linalg.eigh(tensor)
    if np.linalg.det(frame) < 0.0:
        frame[:, 2] = -frame[:, 2]
    return moments, frame


def vanishing_threshold(moments: np.ndarray, epsilon: float) -> float:
    scale = max(1.0, float(np.max(np.abs(moments))))
    return epsilon * scale


def vanishing_axes(moments: np.ndarray, epsilon: float) -> tuple[int, ...]:
    threshold = vanishing_threshold(moments, epsilon)
    return tuple(int(i) for i, value in enumerate(moments) if abs(float(value)) < threshold)


def apply_inverse_inertia(inertia: np.ndarray, vector: np.ndarray, epsilon: float) -> np.ndarray:
    """Apply the pseudo-inverse of ``inertia`` to ``vector``.

    Vanishing principal moments contribute nothing, so single-member and
    linear bodies never need an invertible tensor.
    """
    moments, frame = principal_axes(inertia)
    threshold = vanishing_threshold(moments, epsilon)
    inverse = np.array([1.0 / value if abs(value) >= threshold else 0.0 for value in moments])
    local = frame.T @ np.asarray(vector, dtype=np.float64).reshape(3)
    return frame @ (inverse * local)
