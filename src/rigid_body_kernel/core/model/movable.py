from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Protocol, Tuple

import numpy as np

from .particles import Capability, Particle, ParticleArena, Vector
from .rigid_body import RigidBody

MemberIdSeparator = ":"

Movable = Particle | RigidBody


class MovableLike(Protocol):
    """What integrator and output code may rely on for any movable object."""

    capability: Capability
    mass: float
    position: Vector
    velocity: Vector
    force: Vector
    orientation: Vector | None
    angular_momentum: Vector | None
    torque: Vector | None

    @property
    def object_id(self) -> str:
        ...

    @property
    def is_directional(self) -> bool:
        ...

    def rotation_matrix(self) -> np.ndarray:
        ...

    def set_rotation_matrix(self, rotation: np.ndarray) -> None:
        ...

    def inertia_tensor(self) -> np.ndarray:
        ...

    def kinetic_energy(self, epsilon: float) -> float:
        ...


@dataclass(frozen=True)
class MovableState:
    object_id: str
    capability: Capability
    mass: float
    position: Vector
    velocity: Vector
    force: Vector
    orientation: Vector | None = None
    angular_momentum: Vector | None = None
    torque: Vector | None = None

    @property
    def is_directional(self) -> bool:
        return self.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL


def _copy(values: Vector | None) -> Vector | None:
    return None if values is None else np.array(values, dtype=float)


def movable_state(obj: MovableLike, object_id: str | None = None) -> MovableState:
    rotational = obj.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL
    return MovableState(
        object_id=obj.object_id if object_id is None else object_id,
        capability=obj.capability,
        mass=float(obj.mass),
        position=np.array(obj.position, dtype=float),
        velocity=np.array(obj.velocity, dtype=float),
        force=np.array(obj.force, dtype=float),
        orientation=_copy(obj.orientation) if rotational else None,
        angular_momentum=_copy(obj.angular_momentum) if rotational else None,
        torque=_copy(obj.torque) if rotational else None,
    )


def integrable_objects(arena: ParticleArena, bodies: Iterable[RigidBody]) -> List[Movable]:
    """Free particles in arena order followed by the rigid bodies."""
    objects: List[Movable] = [arena[index] for index in arena.free_indices()]
    objects.extend(bodies)
    return objects


def iter_movable_states(objects: Iterable[MovableLike]) -> List[MovableState]:
    return [movable_state(obj) for obj in objects]


def member_object_id(body: RigidBody, particle: Particle) -> str:
    return f"{body.body_id}{MemberIdSeparator}{particle.particle_id}"


def iter_particle_states(arena: ParticleArena, bodies: Iterable[RigidBody] = ()) -> List[MovableState]:
    """Per-particle snapshots in arena order; members are named ``body:particle``."""
    owners = {body.body_id: body for body in bodies}
    states: List[MovableState] = []
    for index, particle in enumerate(arena):
        body = owners.get(arena.owner_of(index) or "")
        object_id = particle.particle_id if body is None else member_object_id(body, particle)
        states.append(movable_state(particle, object_id=object_id))
    return states


def resolve_movable_by_id(
    objects: Iterable[Movable], object_id: str
) -> Tuple[Movable | None, Particle | None]:
    for obj in objects:
        if obj.object_id == object_id:
            return obj, None
        if isinstance(obj, RigidBody):
            prefix = f"{obj.body_id}{MemberIdSeparator}"
            if object_id.startswith(prefix):
                particle_id = object_id[len(prefix) :]
                for particle in obj.iter_atoms():
                    if particle.particle_id == particle_id:
                        return obj, particle
    return None, None
