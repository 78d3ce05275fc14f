from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Protocol

import numpy as np

from ..physics.inertia import apply_inverse_inertia
from ..physics.rotations import IDENTITY_QUATERNION, matrix_to_quaternion, normalize_quaternion, quat_to_matrix
from ..settings import DEFAULT_SETTINGS

Vector = np.ndarray


class Capability(str, Enum):
    TRANSLATIONAL = "translational"
    TRANSLATIONAL_AND_ROTATIONAL = "translational_and_rotational"


def _to_vector(values: Iterable[float], *, length: int | None = None) -> Vector:
    arr = np.asarray(list(values), dtype=float)
    if arr.ndim != 1:
        raise ValueError("Vector must be 1D")
    if length is not None and arr.size != length:
        raise ValueError(f"Vector must have length {length}")
    return arr


def _to_tensor(values: object) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.shape != (3, 3):
        raise ValueError("Tensor must have shape (3, 3)")
    return arr.copy()


class MassPointLike(Protocol):
    mass: float
    position: Vector
    velocity: Vector


@dataclass(eq=False)
class Particle:
    particle_id: str
    mass: float
    position: Vector = field(default_factory=lambda: np.zeros(3, dtype=float))
    velocity: Vector = field(default_factory=lambda: np.zeros(3, dtype=float))
    force: Vector = field(default_factory=lambda: np.zeros(3, dtype=float))
    capability: Capability = Capability.TRANSLATIONAL
    # Unit quaternion mapping the particle frame into the lab frame.
    orientation: Vector | None = None
    # Body-frame angular momentum.
    angular_momentum: Vector | None = None
    torque: Vector | None = None
    inertia: np.ndarray | None = None

    def __post_init__(self) -> None:
        if not self.mass > 0:
            raise ValueError("Mass must be positive")
        self.capability = Capability(self.capability)
        self.position = _to_vector(self.position, length=3)
        self.velocity = _to_vector(self.velocity, length=3)
        self.force = _to_vector(self.force, length=3)
        if not self.is_directional:
            if any(value is not None for value in (self.orientation, self.angular_momentum, self.torque, self.inertia)):
                raise ValueError(f"Particle {self.particle_id!r} is not directional but carries rotational state")
            return
        if self.orientation is None:
            self.orientation = IDENTITY_QUATERNION.copy()
        self.orientation = normalize_quaternion(_to_vector(self.orientation, length=4))
        if self.angular_momentum is None:
            self.angular_momentum = np.zeros(3, dtype=float)
        self.angular_momentum = _to_vector(self.angular_momentum, length=3)
        if self.torque is None:
            self.torque = np.zeros(3, dtype=float)
        self.torque = _to_vector(self.torque, length=3)
        if self.inertia is not None:
            self.inertia = _to_tensor(self.inertia)

    @property
    def object_id(self) -> str:
        return self.particle_id

    @property
    def is_directional(self) -> bool:
        return self.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL

    def rotation_matrix(self) -> np.ndarray:
        if self.orientation is None:
            return np.eye(3, dtype=float)
        return quat_to_matrix(self.orientation)

    def set_rotation_matrix(self, rotation: np.ndarray) -> None:
        if not self.is_directional:
            raise ValueError(f"Particle {self.particle_id!r} has no orientation")
        self.orientation = matrix_to_quaternion(rotation)

    def inertia_tensor(self) -> np.ndarray:
        if self.inertia is None:
            return np.zeros((3, 3), dtype=float)
        return self.inertia.copy()

    def kinetic_energy(self, epsilon: float = DEFAULT_SETTINGS.linear_axis_epsilon) -> float:
        energy = 0.5 * self.mass * float(np.dot(self.velocity, self.velocity))
        if self.is_directional and self.inertia is not None:
            omega_body = apply_inverse_inertia(self.inertia, self.angular_momentum, epsilon)
            energy += 0.5 * float(np.dot(omega_body, self.angular_momentum))
        return energy

    def zero_accumulators(self) -> None:
        self.force = np.zeros(3, dtype=float)
        if self.is_directional:
            self.torque = np.zeros(3, dtype=float)


class ParticleArena:
    """Shared particle storage; rigid bodies refer to members by arena index."""

    def __init__(self, particles: Iterable[Particle] = ()) -> None:
        self._particles: List[Particle] = []
        self._owners: List[str | None] = []
        self._index_by_identity: dict[int, int] = {}
        for particle in particles:
            self.add(particle)

    def add(self, particle: Particle) -> int:
        key = id(particle)
        if key in self._index_by_identity:
            raise ValueError(f"Particle {particle.particle_id!r} is already stored in this arena")
        index = len(self._particles)
        self._particles.append(particle)
        self._owners.append(None)
        self._index_by_identity[key] = index
        return index

    def __getitem__(self, index: int) -> Particle:
        return self._particles[index]

    def __len__(self) -> int:
        return len(self._particles)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self._particles)

    def index_of(self, particle: Particle) -> int | None:
        return self._index_by_identity.get(id(particle))

    def owner_of(self, index: int) -> str | None:
        return self._owners[index]

    def claim(self, index: int, body_id: str) -> None:
        owner = self._owners[index]
        if owner is not None:
            raise ValueError(f"Particle {self._particles[index].particle_id!r} already belongs to {owner!r}")
        self._owners[index] = body_id

    def release(self, index: int) -> None:
        self._owners[index] = None

    def truncate(self, length: int) -> None:
        """Drop particles stored at ``length`` and beyond; they must be unowned."""
        if not 0 <= length <= len(self._particles):
            raise ValueError(f"Cannot truncate arena of {len(self._particles)} particles to {length}")
        owned = [self._particles[i].particle_id for i in range(length, len(self._particles)) if self._owners[i]]
        if owned:
            raise ValueError(f"Cannot drop particles still owned by a rigid body: {owned}")
        for particle in self._particles[length:]:
            del self._index_by_identity[id(particle)]
        del self._particles[length:]
        del self._owners[length:]

    def free_indices(self) -> List[int]:
        return [index for index, owner in enumerate(self._owners) if owner is None]

    def zero_accumulators(self) -> None:
        for particle in self._particles:
            particle.zero_accumulators()
