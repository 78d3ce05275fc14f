"""Quaternion and rotation-matrix helpers.

Rotation matrices map body-frame vectors into the lab frame
(``r_lab = R @ r_body``). Quaternions are stored as ``(w, x, y, z)`` and
follow the same convention.
"""

from __future__ import annotations

import numpy as np

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0], dtype=float)


def normalize_quaternion(q: np.ndarray) -> np.ndarray:
    q_arr = np.asarray(q, dtype=float).reshape(4)
    norm = float(np.linalg.norm(q_arr))
    if norm <= 0.0 or not np.isfinite(norm):
        raise ValueError("Quaternion must be non-zero and finite")
    return q_arr / norm


def quat_multiply(q_left: np.ndarray, q_right: np.ndarray) -> np.ndarray:
    w1, x1, y1, z1 = np.asarray(q_left, dtype=float).reshape(4)
    w2, x2, y2, z2 = np.asarray(q_right, dtype=float).reshape(4)
    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ],
        dtype=float,
    )


def quat_conjugate(q: np.ndarray) -> np.ndarray:
    w, x, y, z = np.asarray(q, dtype=float).reshape(4)
    return np.array([w, -x, -y, -z], dtype=float)


def quat_to_matrix(q: np.ndarray) -> np.ndarray:
    w, x, y, z = normalize_quaternion(q)
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ],
        dtype=float,
    )


def matrix_to_quaternion(rotation: np.ndarray) -> np.ndarray:
    """Return the unit quaternion of a proper rotation, with ``w >= 0``."""
    r = np.asarray(rotation, dtype=float).reshape(3, 3)
    trace = float(np.trace(r))
    if trace > 0.0:
        s = 2.0 * np.sqrt(trace + 1.0)
        q = np.array([0.25 * s, (r[2, 1] - r[1, 2]) / s, (r[0, 2] - r[2, 0]) / s, (r[1, 0] - r[0, 1]) / s])
    elif r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = 2.0 * np.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2])
        q = np.array([(r[2, 1] - r[1, 2]) / s, 0.25 * s, (r[0, 1] + r[1, 0]) / s, (r[0, 2] + r[2, 0]) / s])
    elif r[1, 1] > r[2, 2]:
        s = 2.0 * np.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2])
        q = np.array([(r[0, 2] - r[2, 0]) / s, (r[0, 1] + r[1, 0]) / s, 0.25 * s, (r[1, 2] + r[2, 1]) / s])
    else:
        s = 2.0 * np.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1])
        q = np.array([(r[1, 0] - r[0, 1]) / s, (r[0, 2] + r[2, 0]) / s, (r[1, 2] + r[2, 1]) / s, 0.25 * s])
    q = normalize_quaternion(q)
    if q[0] < 0.0:
        q = -q
    return q


def integrate_quaternion_body(q: np.ndarray, omega_body: np.ndarray, dt: float) -> np.ndarray:
    omega = np.asarray(omega_body, dtype=float).reshape(3)
    angle = float(np.linalg.norm(omega)) * dt
    if angle <= 1e-12:
        return normalize_quaternion(q)
    axis = omega / float(np.linalg.norm(omega))
    half = 0.5 * angle
    delta = np.array(
        [np.cos(half), axis[0] * np.sin(half), axis[1] * np.sin(half), axis[2] * np.sin(half)],
        dtype=float,
    )
    # Right-multiply because q maps body -> lab and omega is expressed in the body frame.
    return normalize_quaternion(quat_multiply(q, delta))


def rotation_error(rotation: np.ndarray) -> float:
    """Largest deviation of ``R`` from ``R @ R.T == I`` and ``det(R) == 1``."""
    r = np.asarray(rotation, dtype=float)
    if r.shape != (3, 3) or not np.all(np.isfinite(r)):
        return float("inf")
    ortho = float(np.max(np.abs(r @ r.T - np.eye(3))))
    return max(ortho, abs(float(np.linalg.det(r)) - 1.0))


def is_proper_rotation(rotation: np.ndarray, tolerance: float) -> bool:
    return rotation_error(rotation) <= tolerance


def euler_to_matrix(phi: float, theta: float, psi: float) -> np.ndarray:
    """Body -> lab rotation for z-x-z Euler angles (Goldstein convention)."""
    sphi, cphi = np.sin(phi), np.cos(phi)
    stheta, ctheta = np.sin(theta), np.cos(theta)
    spsi, cpsi = np.sin(psi), np.cos(psi)
    # Goldstein's matrix maps lab -> body; its transpose is returned.
    lab_to_body = np.array(
        [
            [cpsi * cphi - ctheta * sphi * spsi, cpsi * sphi + ctheta * cphi * spsi, spsi * stheta],
            [-spsi * cphi - ctheta * sphi * cpsi, -spsi * sphi + ctheta * cphi * cpsi, cpsi * stheta],
            [stheta * sphi, -stheta * cphi, ctheta],
        ],
        dtype=float,
    )
    return lab_to_body.T


def matrix_to_euler(rotation: np.ndarray) -> np.ndarray:
    """Inverse of :func:`euler_to_matrix`; angles are wrapped to ``[0, 2*pi)``."""
    a = np.asarray(rotation, dtype=float).reshape(3, 3).T
    ctheta = float(np.clip(a[2, 2], -1.0, 1.0))
    theta = float(np.arccos(ctheta))
    if abs(np.sin(theta)) < 1e-6:
        psi = 0.0
        phi = float(np.arctan2(a[0, 1], a[0, 0]))
    else:
        phi = float(np.arctan2(a[2, 0], -a[2, 1]))
        psi = float(np.arctan2(a[0, 2], a[1, 2]))
    two_pi = 2.0 * np.pi
    return np.array([phi % two_pi, theta, psi % two_pi], dtype=float)
