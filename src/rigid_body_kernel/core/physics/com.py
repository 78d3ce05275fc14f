from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np

if TYPE_CHECKING:
    from ..model import MassPointLike, Vector


def _masses(points: Sequence[MassPointLike]) -> np.ndarray:
    if not points:
        raise ValueError("No particles provided")
    masses = np.array([point.mass for point in points], dtype=float)
    if float(np.sum(masses)) <= 0.0:
        raise ValueError("Total mass must be positive")
    return masses


def _weighted_mean(values: np.ndarray, masses: np.ndarray) -> Vector:
    return np.sum(values * masses[:, None], axis=0) / np.sum(masses)


def total_mass(points: Iterable[MassPointLike]) -> float:
    return float(np.sum([point.mass for point in points]))


def center_of_mass(points: Iterable[MassPointLike]) -> Vector:
    points_list = list(points)
    masses = _masses(points_list)
    return _weighted_mean(np.stack([point.position for point in points_list]), masses)


def center_of_velocity(points: Iterable[MassPointLike]) -> Vector:
    points_list = list(points)
    masses = _masses(points_list)
    return _weighted_mean(np.stack([point.velocity for point in points_list]), masses)


def mass_weighted_offset_sum(offsets: np.ndarray, masses: np.ndarray) -> Vector:
    r = np.asarray(offsets, dtype=float).reshape(-1, 3)
    m = np.asarray(masses, dtype=float).reshape(-1)
    return np.sum(r * m[:, None], axis=0)


def invariant_position_sum(points: Iterable[MassPointLike]) -> Vector:
    points_list = list(points)
    com = center_of_mass(points_list)
    offsets = np.stack([point.position for point in points_list]) - com
    return mass_weighted_offset_sum(offsets, _masses(points_list))


def angular_momentum_about_com(points: Iterable[MassPointLike]) -> Vector:
    """Orbital angular momentum of the points about their CoM, in the lab frame."""
    points_list = list(points)
    masses = _masses(points_list)
    positions = np.stack([point.position for point in points_list])
    velocities = np.stack([point.velocity for point in points_list])
    offsets = positions - _weighted_mean(positions, masses)
    relative = velocities - _weighted_mean(velocities, masses)
    return np.sum(masses[:, None] * np.cross(offsets, relative), axis=0)
